"""
binlog 时间线报表

SHOW BINARY LOGS -> 并发探测 -> 时间线重建 -> 表格输出
"""

import sys
from typing import List, Optional, Sequence, TextIO

from binlog_timeline.core.config import Config
from binlog_timeline.core.formatting import format_duration, format_file_size, format_timestamp, resolve_timezone
from binlog_timeline.core.logger import Logger
from binlog_timeline.core.mysql_utils import MySQLUtils

from .dispatcher import dispatch
from .probe import ReplicationSession, SessionFactory
from .timeline import BinlogReport, reconstruct

HEADER = ["Log_name", "File_size", "Start_time", "End_time", "Duration", "GTID"]
FORMATS = ("table", "markdown", "tsv")


def report_rows(reports: Sequence[BinlogReport], tz=None, newest_first: bool = False) -> List[List[str]]:
    """BinlogReport -> 字符串行"""
    rows = []
    for report in reports:
        rows.append([
            report.name,
            format_file_size(report.size),
            format_timestamp(report.start_time, tz),
            format_timestamp(report.end_time, tz),
            format_duration(report.duration),
            report.gtid_delta,
        ])
    if newest_first:
        rows.reverse()
    return rows


def _ascii_table(header: List[str], rows: List[List[str]]) -> str:
    widths = [len(h) for h in header]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def line(cells):
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    out = [border, line(header), border]
    out.extend(line(row) for row in rows)
    out.append(border)
    return "\n".join(out) + "\n"


def _markdown_table(header: List[str], rows: List[List[str]]) -> str:
    data = "|" + "|".join(header) + "|\n"
    data += "|" + "|".join("-" for _ in header) + "|\n"
    for row in rows:
        data += "|" + "|".join(row) + "|\n"
    return data


def render_table(reports: Sequence[BinlogReport], fmt: str = "table", newest_first: bool = False, tz=None) -> str:
    """
    渲染报表

    Args:
        reports: 从旧到新排列的报表行
        fmt: table / markdown / tsv
        newest_first: 是否按从新到旧输出
        tz: 时间显示时区，None 为本地时区

    Returns:
        渲染后的文本
    """
    rows = report_rows(reports, tz=tz, newest_first=newest_first)
    if fmt == "table":
        return _ascii_table(HEADER, rows)
    if fmt == "markdown":
        return _markdown_table(HEADER, rows)
    if fmt == "tsv":
        return "\n".join("\t".join(r) for r in [HEADER] + rows) + "\n"
    raise ValueError(f"不支持的输出格式: {fmt}")


def run(mysql: MySQLUtils, concurrency: Optional[int] = None, server_id_base: Optional[int] = None,
        max_events: Optional[int] = None, fmt: Optional[str] = None, newest_first: bool = False,
        use_gtid_executed: bool = True, timezone_name: Optional[str] = None,
        session_factory: SessionFactory = ReplicationSession, logger: Optional[Logger] = None,
        out: Optional[TextIO] = None) -> List[BinlogReport]:
    """
    生成并输出 binlog 时间线报表

    Args:
        mysql: MySQL 工具实例（目录查询和连接参数）
        concurrency: 并发探测数，None 使用 Config
        server_id_base: 复制客户端 server_id 基数，None 使用 Config
        max_events: 每个文件最多读取的事件数，None 使用 Config
        fmt: 输出格式，None 使用 Config
        newest_first: 是否按从新到旧输出
        use_gtid_executed: 是否用 gtid_executed 计算最新文件的 GTID 增量
        timezone_name: 时间显示时区，None 使用 Config
        session_factory: 会话工厂（测试可替换）
        logger: 日志器实例
        out: 报表输出流，默认 stdout

    Returns:
        从旧到新排列的 BinlogReport 列表
    """
    logger = logger or mysql.logger
    out = out or sys.stdout
    concurrency = concurrency if concurrency is not None else Config.BINLOG_PARALLEL
    server_id_base = server_id_base if server_id_base is not None else Config.BINLOG_SERVER_ID_BASE
    max_events = max_events if max_events is not None else Config.BINLOG_PROBE_MAX_EVENTS
    fmt = fmt or Config.REPORT_FORMAT
    tz = resolve_timezone(timezone_name if timezone_name is not None else Config.REPORT_TZ)
    if fmt not in FORMATS:
        raise ValueError(f"不支持的输出格式: {fmt}")

    # 先于文件列表读取，避免把列表之外新文件中的事务计入最新文件
    gtid_executed = mysql.get_gtid_executed() if use_gtid_executed else None
    files = mysql.list_binary_logs()
    logger.debug(f"SHOW BINARY LOGS 完成, 共 {len(files)} 个 binlog 待分析")
    if not files:
        logger.warning("服务端没有 binlog 文件（未开启 log_bin？）")
        return []

    results = dispatch(
        files, mysql.connection_settings(),
        concurrency=concurrency, server_id_base=server_id_base, max_events=max_events,
        session_factory=session_factory, logger=logger
    )
    reports = reconstruct(files, results, gtid_executed=gtid_executed, logger=logger)

    out.write(render_table(reports, fmt=fmt, newest_first=newest_first, tz=tz))
    out.flush()
    logger.debug(f"已分析 {len(reports)} 个 binlog")
    return reports
