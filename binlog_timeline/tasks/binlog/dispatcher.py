"""
并发探测分发

每个 binlog 文件一个探测任务，线程池大小即并发上限。
结果按原始下标写入预先分配的列表，各任务只写自己的下标。
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from binlog_timeline.core.errors import DispatchError, ProbeError
from binlog_timeline.core.logger import Logger
from binlog_timeline.core.mysql_utils import BinlogFile

from .probe import ReplicationSession, SessionFactory, probe_binlog

DEFAULT_SERVER_ID_BASE = 33061


@dataclass(frozen=True)
class ProbeResult:
    """单个文件的探测结果"""
    index: int
    start_time: Optional[int] = None
    previous_gtids: str = ""
    error: Optional[ProbeError] = None


def _probe_task(index: int, log_name: str, connection_settings: Dict[str, Any], server_id: int,
                max_events: int, session_factory: SessionFactory, logger: Logger) -> ProbeResult:
    """线程池中执行的单个任务"""
    try:
        start_time, previous_gtids = probe_binlog(
            connection_settings, log_name, server_id,
            max_events=max_events, session_factory=session_factory, logger=logger
        )
    except ProbeError as e:
        return ProbeResult(index=index, error=e)
    except Exception as e:
        # 其余异常同样记入结果，保证等待全部任务结束后统一报告
        error = ProbeError(f"{log_name}: {type(e).__name__}: {e}", log_name)
        error.__cause__ = e
        return ProbeResult(index=index, error=error)
    return ProbeResult(index=index, start_time=start_time, previous_gtids=previous_gtids)


def dispatch(files: Sequence[BinlogFile], connection_settings: Dict[str, Any], concurrency: int = 5,
             server_id_base: int = DEFAULT_SERVER_ID_BASE, max_events: int = 3,
             session_factory: SessionFactory = ReplicationSession,
             logger: Optional[Logger] = None) -> List[ProbeResult]:
    """
    并发探测所有 binlog 文件

    Args:
        files: 按服务端顺序排列的 binlog 文件
        connection_settings: pymysql 连接参数
        concurrency: 同时打开的复制会话上限
        server_id_base: 复制客户端 server_id 基数，任务 i 使用 server_id_base + i
        max_events: 每个文件最多读取的事件数
        session_factory: 会话工厂（测试可替换）
        logger: 日志器实例

    Returns:
        与 files 一一对应的 ProbeResult 列表

    Raises:
        ValueError: concurrency 小于 1
        DispatchError: 任一文件探测失败（等待全部任务结束后抛出）
    """
    if concurrency < 1:
        raise ValueError(f"并发数必须大于 0: {concurrency}")
    logger = logger or Logger()
    total = len(files)
    results: List[Optional[ProbeResult]] = [None] * total
    failures: List[ProbeError] = []

    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="binlog-probe") as executor:
        # 从最新的文件开始提交
        futures = [
            executor.submit(
                _probe_task, index, files[index].name, connection_settings,
                server_id_base + index, max_events, session_factory, logger
            )
            for index in range(total - 1, -1, -1)
        ]
        done = 0
        for future in as_completed(futures):
            result = future.result()
            results[result.index] = result
            done += 1
            if result.error is not None:
                failures.append(result.error)
                logger.error(f"{files[result.index].name} 探测失败: {result.error}")
            else:
                logger.debug(f"{files[result.index].name} 探测完成, 还剩 {total - done} 个文件")

    missing = [i for i, r in enumerate(results) if r is None]
    if missing:
        raise RuntimeError(f"探测结果缺失: {missing}")
    if failures:
        raise DispatchError(failures)
    return results
