"""
格式化模块
字节数 / 时间戳 / 时长的可读化输出
"""

from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import FormatError

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_bytes(size: int) -> str:
    """将字节数转换为可读单位（1024 进制，保留两位小数）"""
    unit = "bytes"
    divisor = 1
    if size >= GB:
        divisor, unit = GB, "GB"
    elif size >= MB:
        divisor, unit = MB, "MB"
    elif size >= KB:
        divisor, unit = KB, "KB"
    return f"{size / divisor:.2f} {unit}"


def parse_file_size(raw: Union[str, int]) -> int:
    """解析 SHOW BINARY LOGS 返回的 File_size"""
    try:
        size = int(raw)
    except (TypeError, ValueError):
        raise FormatError(f"无法解析文件大小: {raw!r}") from None
    if size < 0:
        raise FormatError(f"文件大小不能为负数: {raw!r}")
    return size


def format_file_size(raw: Union[str, int]) -> str:
    """格式: 原始字节数 (可读大小)"""
    size = parse_file_size(raw)
    return f"{size} ({format_bytes(size)})"


def resolve_timezone(name: Optional[str]):
    """时区名 -> tzinfo，空值表示本地时区（返回 None）"""
    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise FormatError(f"未知时区: {name}") from None


def format_timestamp(timestamp: Optional[int], tz=None) -> str:
    """Unix 时间戳 -> YYYY-MM-DD HH:MM:SS，None 返回空串"""
    if timestamp is None:
        return ""
    try:
        if tz is None:
            dt = datetime.fromtimestamp(timestamp)
        else:
            dt = datetime.fromtimestamp(timestamp, tz)
    except (OverflowError, OSError, ValueError) as e:
        raise FormatError(f"无效的时间戳 {timestamp!r}: {e}") from e
    return dt.strftime(TIME_FORMAT)


def format_duration(seconds: Optional[int]) -> str:
    """秒数 -> HH:MM:SS（小时不按天进位），None 返回空串"""
    if seconds is None:
        return ""
    sign = "-" if seconds < 0 else ""
    seconds = abs(int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{sign}{hours:02d}:{minutes:02d}:{secs:02d}"
