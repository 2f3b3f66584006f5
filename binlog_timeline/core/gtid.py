"""
GTID 集合模块
解析 / 差集 / 并集 / 规范化输出

文本格式: uuid:interval[:interval...][,uuid:interval...]
interval 为 "n" 或 "a-b"（闭区间）
"""

from typing import Dict, Iterable, List, Tuple

from .errors import GtidParseError, GtidSubtractError

Interval = Tuple[int, int]


def merge_intervals(intervals: Iterable[Interval]) -> List[Interval]:
    """排序并合并重叠或相邻的闭区间"""
    intervals_sorted = sorted(intervals)
    if not intervals_sorted:
        return []
    merged: List[Interval] = []
    cur_start, cur_end = intervals_sorted[0]
    for start, end in intervals_sorted[1:]:
        if start <= cur_end + 1:
            cur_end = max(cur_end, end)
        else:
            merged.append((cur_start, cur_end))
            cur_start, cur_end = start, end
    merged.append((cur_start, cur_end))
    return merged


def subtract_intervals(a: List[Interval], b: List[Interval]) -> List[Interval]:
    """
    返回 a - b

    Args:
        a: 已合并且有序的区间列表
        b: 已合并且有序的区间列表

    Returns:
        已合并且有序的区间列表
    """
    result: List[Interval] = []
    bi = 0
    for start, end in a:
        cur = start
        # 跳过完全位于当前区间左侧的 b
        while bi < len(b) and b[bi][1] < cur:
            bi += 1
        ti = bi
        while ti < len(b) and b[ti][0] <= end and cur <= end:
            b_start, b_end = b[ti]
            if b_start > cur:
                result.append((cur, b_start - 1))
            cur = max(cur, b_end + 1)
            ti += 1
        if cur <= end:
            result.append((cur, end))
    return result


def _parse_interval(token: str, text: str, exclusive_end: bool) -> Interval:
    """解析单个区间 token"""
    try:
        if '-' in token:
            a, b = token.split('-', 1)
            start, end = int(a), int(b)
            if exclusive_end:
                end -= 1
        else:
            start = end = int(token)
    except ValueError:
        raise GtidParseError(f"无效的 GTID 区间 '{token}': {text!r}") from None
    if start < 1 or end < start:
        raise GtidParseError(f"无效的 GTID 区间 '{token}': {text!r}")
    return start, end


class GtidSet:
    """GTID 集合: {source_id: [(start, end), ...]}，区间始终保持合并且有序"""

    def __init__(self, sets: Dict[str, List[Interval]] = None):
        self.sets: Dict[str, List[Interval]] = {}
        for sid, intervals in (sets or {}).items():
            merged = merge_intervals(intervals)
            if merged:
                self.sets[sid] = merged

    @classmethod
    def parse(cls, text: str, exclusive_end: bool = False) -> "GtidSet":
        """
        解析 GTID 集合文本

        Args:
            text: GTID 集合文本，空串或 None 表示空集合
            exclusive_end: 区间结束值是否为开区间（复制协议中的原始编码）

        Returns:
            GtidSet

        Raises:
            GtidParseError: 文本格式错误
        """
        sets: Dict[str, List[Interval]] = {}
        if text is None:
            return cls()
        # SELECT @@gtid_executed 的结果中可能带换行
        normalized = text.replace('\n', '').strip()
        if not normalized:
            return cls()

        for part in normalized.split(','):
            part = part.strip()
            if not part:
                raise GtidParseError(f"GTID 集合中存在空的片段: {text!r}")
            segs = part.split(':')
            sid = segs[0].strip()
            if not sid or len(segs) < 2:
                raise GtidParseError(f"无效的 GTID 片段 '{part}': {text!r}")
            intervals = [_parse_interval(tok.strip(), text, exclusive_end) for tok in segs[1:]]
            sets.setdefault(sid, []).extend(intervals)
        return cls(sets)

    def __sub__(self, other: "GtidSet") -> "GtidSet":
        if not isinstance(other, GtidSet):
            raise GtidSubtractError(f"无法从 GTID 集合中减去 {type(other).__name__}")
        result = {}
        for sid, intervals in self.sets.items():
            remaining = subtract_intervals(intervals, other.sets.get(sid, []))
            if remaining:
                result[sid] = remaining
        return GtidSet(result)

    def __add__(self, other: "GtidSet") -> "GtidSet":
        if not isinstance(other, GtidSet):
            return NotImplemented
        combined = {sid: list(intervals) for sid, intervals in self.sets.items()}
        for sid, intervals in other.sets.items():
            combined.setdefault(sid, []).extend(intervals)
        return GtidSet(combined)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GtidSet):
            return NotImplemented
        return self.sets == other.sets

    def __bool__(self) -> bool:
        return bool(self.sets)

    def __str__(self) -> str:
        items = []
        for sid in sorted(self.sets):
            parts = [str(s) if s == e else f"{s}-{e}" for s, e in self.sets[sid]]
            items.append(f"{sid}:{':'.join(parts)}")
        return ','.join(items)

    def __repr__(self) -> str:
        return f"<GtidSet {str(self)!r}>"


def gtid_subtract(minuend: str, subtrahend: str) -> str:
    """返回 minuend - subtrahend 的规范化文本"""
    return str(GtidSet.parse(minuend) - GtidSet.parse(subtrahend))


def extract_gtid_suffix(gtid_text: str) -> str:
    """单一来源（无逗号）时只保留冒号后的区间部分，否则原样返回"""
    if ',' not in gtid_text and ':' in gtid_text:
        parts = gtid_text.split(':')
        if len(parts) == 2:
            return parts[1]
    return gtid_text
