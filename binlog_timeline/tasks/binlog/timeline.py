"""
时间线重建

从最新的 binlog 向最旧的方向遍历:
  文件 i 的结束时间 = 文件 i+1 的开始时间
  文件 i 的 GTID 增量 = 文件 i+1 的 previous_gtids - 文件 i 的 previous_gtids
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from binlog_timeline.core.errors import GtidParseError
from binlog_timeline.core.gtid import GtidSet, extract_gtid_suffix
from binlog_timeline.core.logger import Logger
from binlog_timeline.core.mysql_utils import BinlogFile

from .dispatcher import ProbeResult


@dataclass(frozen=True)
class BinlogReport:
    """报表中的一行"""
    name: str
    size: object
    start_time: Optional[int]
    end_time: Optional[int]
    duration: Optional[int]
    previous_gtids: str
    next_previous_gtids: Optional[str]
    gtid_delta: str


def _parse(text: str, log_name: str, what: str) -> GtidSet:
    try:
        return GtidSet.parse(text)
    except GtidParseError as e:
        raise GtidParseError(f"{log_name}: 无法解析 {what}: {e}") from e


def gtid_delta(next_previous_gtids: Optional[str], previous_gtids: str, log_name: str = "") -> str:
    """
    计算文件内产生的事务

    Args:
        next_previous_gtids: 后继文件的 previous_gtids（最新文件为 gtid_executed 或 None）
        previous_gtids: 本文件的 previous_gtids
        log_name: 文件名，用于错误信息

    Returns:
        单一来源时只返回区间部分，多来源时返回完整集合文本；无后继信息时返回空串
    """
    if next_previous_gtids is None:
        return ""
    upper = _parse(next_previous_gtids, log_name, "后继文件的 previous_gtids")
    lower = _parse(previous_gtids, log_name, "previous_gtids")
    return extract_gtid_suffix(str(upper - lower))


def reconstruct(files: Sequence[BinlogFile], results: Sequence[ProbeResult], gtid_executed: Optional[str] = None,
                logger: Optional[Logger] = None) -> List[BinlogReport]:
    """
    根据探测结果重建每个文件的时间范围和 GTID 增量

    Args:
        files: 按服务端顺序（从旧到新）排列的文件
        results: 与 files 一一对应的探测结果
        gtid_executed: 当前 @@GLOBAL.gtid_executed，用于计算最新文件的 GTID 增量；None 时留空
        logger: 日志器实例

    Returns:
        从旧到新排列的 BinlogReport 列表
    """
    if len(files) != len(results):
        raise ValueError(f"文件数 ({len(files)}) 与探测结果数 ({len(results)}) 不一致")
    for position, result in enumerate(results):
        if result.index != position:
            raise ValueError(f"探测结果顺序错误: 位置 {position} 的结果属于文件 {result.index}")
        if result.error is not None:
            raise result.error

    logger = logger or Logger()
    next_start_time: Optional[int] = None
    next_previous_gtids: Optional[str] = gtid_executed
    reports: List[BinlogReport] = []

    for i in range(len(files) - 1, -1, -1):
        binlog = files[i]
        result = results[i]
        end_time = next_start_time
        duration = None
        if end_time is not None and result.start_time is not None:
            duration = end_time - result.start_time

        delta = gtid_delta(next_previous_gtids, result.previous_gtids, binlog.name)
        reports.append(BinlogReport(
            name=binlog.name,
            size=binlog.size,
            start_time=result.start_time,
            end_time=end_time,
            duration=duration,
            previous_gtids=result.previous_gtids,
            next_previous_gtids=next_previous_gtids,
            gtid_delta=delta,
        ))
        logger.debug(f"{binlog.name} 分析完成, 还剩 {i} 个文件")

        next_start_time = result.start_time
        next_previous_gtids = result.previous_gtids

    reports.reverse()
    return reports
