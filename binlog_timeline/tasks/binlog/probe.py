"""
binlog 文件探测

以独立的复制客户端身份（server_id）从文件开头读取少量事件，
获取 FORMAT_DESCRIPTION_EVENT 的时间戳（文件创建时间）和
PREVIOUS_GTIDS_LOG_EVENT 中记录的 GTID 集合。
"""

from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

import pymysql
from pymysql.connections import Connection
from pymysqlreplication import BinLogStreamReader
from pymysqlreplication.constants.BINLOG import FORMAT_DESCRIPTION_EVENT, PREVIOUS_GTIDS_LOG_EVENT

from binlog_timeline.core.errors import EventDecodeError, GtidParseError, ReplicationConnectionError, StreamReadError
from binlog_timeline.core.gtid import GtidSet
from binlog_timeline.core.logger import Logger

# binlog 文件中第一个事件的偏移量（4 字节 magic number 之后）
BINLOG_FIRST_EVENT_POS = 4

# CR_SERVER_GONE_ERROR / CR_SERVER_LOST
LOST_CONNECTION_CODES = (2006, 2013)


class StreamConnection(Connection):
    """
    复制流使用的 pymysql 连接

    BinLogStreamReader.fetchone 遇到 2006/2013 会无限重连重读，
    read_timeout 因此无法终止一次探测。这里把断连转换为 StreamReadError，
    使其不再被当作 OperationalError 重试。
    """

    def _read_packet(self, *args, **kwargs):
        try:
            return super()._read_packet(*args, **kwargs)
        except pymysql.err.OperationalError as e:
            if e.args and e.args[0] in LOST_CONNECTION_CODES:
                raise StreamReadError(f"复制连接断开: {e}") from e
            raise


class ProbeEvent(NamedTuple):
    """探测只关心的事件字段"""
    event_type: int
    timestamp: int
    previous_gtids: Optional[str] = None


class ReplicationSession:
    """单个 binlog 文件的复制会话（基于 BinLogStreamReader）"""

    def __init__(self, connection_settings: Dict[str, Any], log_name: str, server_id: int,
                 log_pos: int = BINLOG_FIRST_EVENT_POS, logger: Optional[Logger] = None):
        self.connection_settings = dict(connection_settings)
        self.log_name = log_name
        self.server_id = server_id
        self.log_pos = log_pos
        self.logger = logger or Logger()
        self._stream: Optional[BinLogStreamReader] = None
        self._events_read = 0

    def open(self) -> "ReplicationSession":
        """创建流读取器（实际网络连接在读取第一个事件时建立）"""
        try:
            self._stream = BinLogStreamReader(
                connection_settings=self.connection_settings,
                server_id=self.server_id,
                log_file=self.log_name,
                log_pos=self.log_pos,
                resume_stream=True,
                blocking=False,
                pymysql_wrapper=StreamConnection,
            )
        except (pymysql.MySQLError, OSError) as e:
            raise ReplicationConnectionError(f"{self.log_name}: 无法建立复制会话: {e}", self.log_name) from e
        return self

    def next_event(self) -> Optional[ProbeEvent]:
        """
        读取下一个事件

        Returns:
            ProbeEvent，流结束时返回 None

        Raises:
            ReplicationConnectionError: 第一个事件之前失败（连接/握手/DUMP 请求）
            StreamReadError: 会话建立后读取失败
            EventDecodeError: 事件内容无法解析
        """
        if self._stream is None:
            self.open()
        try:
            event = self._stream.fetchone()
        except (pymysql.MySQLError, OSError, StreamReadError) as e:
            if self._events_read == 0:
                raise ReplicationConnectionError(f"{self.log_name}: 无法建立复制会话: {e}", self.log_name) from e
            raise StreamReadError(f"{self.log_name}: 读取 binlog 事件失败: {e}", self.log_name) from e
        except Exception as e:
            raise EventDecodeError(f"{self.log_name}: 解析 binlog 事件失败: {type(e).__name__}: {e}",
                                   self.log_name) from e
        if event is None:
            return None
        self._events_read += 1

        previous_gtids = None
        if event.event_type == PREVIOUS_GTIDS_LOG_EVENT:
            # 复制协议中的区间结束值为开区间，转换为 SHOW BINLOG EVENTS 相同的闭区间写法
            raw = getattr(event, "_previous_gtids", "") or ""
            try:
                previous_gtids = str(GtidSet.parse(raw, exclusive_end=True))
            except GtidParseError as e:
                raise EventDecodeError(f"{self.log_name}: PREVIOUS_GTIDS 无法解析: {e}", self.log_name) from e
        return ProbeEvent(event.event_type, event.timestamp, previous_gtids)

    def close(self):
        """释放网络连接和服务端 dump 线程"""
        if self._stream is not None:
            stream, self._stream = self._stream, None
            stream.close()

    def __enter__(self) -> "ReplicationSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()


SessionFactory = Callable[..., ReplicationSession]


def probe_binlog(connection_settings: Dict[str, Any], log_name: str, server_id: int, max_events: int = 3,
                 session_factory: SessionFactory = ReplicationSession,
                 logger: Optional[Logger] = None) -> Tuple[Optional[int], str]:
    """
    探测单个 binlog 文件

    Args:
        connection_settings: pymysql 连接参数
        log_name: binlog 文件名
        server_id: 本次探测使用的复制客户端 server_id，需要全局唯一
        max_events: 最多读取的事件数
        session_factory: 会话工厂（测试可替换）
        logger: 日志器实例

    Returns:
        (start_time, previous_gtids)，未读到 FORMAT_DESCRIPTION_EVENT 时 start_time 为 None，
        未读到 PREVIOUS_GTIDS_LOG_EVENT（旧格式 binlog）时 previous_gtids 为空串
    """
    logger = logger or Logger()
    start_time: Optional[int] = None
    previous_gtids = ""

    with session_factory(connection_settings, log_name, server_id, logger=logger) as session:
        for _ in range(max_events):
            event = session.next_event()
            if event is None:
                break
            if event.event_type == FORMAT_DESCRIPTION_EVENT:
                start_time = event.timestamp
            if event.event_type == PREVIOUS_GTIDS_LOG_EVENT:
                previous_gtids = event.previous_gtids or ""
                break

    if start_time is None:
        logger.warning(f"{log_name}: 前 {max_events} 个事件中未找到 FORMAT_DESCRIPTION_EVENT")
    logger.debug(f"{log_name}: server_id={server_id} start_time={start_time} previous_gtids='{previous_gtids}'")
    return start_time, previous_gtids
