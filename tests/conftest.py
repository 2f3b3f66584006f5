"""测试用的假复制会话和公共 fixture"""

import io
import threading
import time
from typing import Dict, List, Optional

import pytest
from pymysqlreplication.constants.BINLOG import FORMAT_DESCRIPTION_EVENT, PREVIOUS_GTIDS_LOG_EVENT, ROTATE_EVENT

from binlog_timeline.core.errors import ReplicationConnectionError, StreamReadError
from binlog_timeline.core.logger import Logger
from binlog_timeline.tasks.binlog.probe import ProbeEvent

QUERY_EVENT = 0x02


def standard_events(start_time: int, previous_gtids: str) -> List[ProbeEvent]:
    """一个 binlog 文件开头的典型事件序列"""
    return [
        ProbeEvent(ROTATE_EVENT, 0),
        ProbeEvent(FORMAT_DESCRIPTION_EVENT, start_time),
        ProbeEvent(PREVIOUS_GTIDS_LOG_EVENT, start_time, previous_gtids),
        ProbeEvent(QUERY_EVENT, start_time + 1),
    ]


class FakeServer:
    """按文件名提供事件序列，并记录会话的并发打开数"""

    def __init__(self, events: Dict[str, List[ProbeEvent]], delay: float = 0.0):
        self.events = events
        self.delay = delay
        self.connect_errors = set()
        self.read_errors = set()
        self.lock = threading.Lock()
        self.open_count = 0
        self.max_open = 0
        self.closed: List[str] = []
        self.server_ids: Dict[str, int] = {}
        self.reads: Dict[str, int] = {}

    def session(self, connection_settings, log_name, server_id, logger=None):
        return FakeSession(self, log_name, server_id)


class FakeSession:
    def __init__(self, server: FakeServer, log_name: str, server_id: int):
        self.server = server
        self.log_name = log_name
        self.server_id = server_id
        self.position = 0

    def __enter__(self):
        if self.log_name in self.server.connect_errors:
            raise ReplicationConnectionError(f"{self.log_name}: connection refused", self.log_name)
        with self.server.lock:
            self.server.open_count += 1
            self.server.max_open = max(self.server.max_open, self.server.open_count)
            self.server.server_ids[self.log_name] = self.server_id
        return self

    def __exit__(self, exc_type, exc, tb):
        with self.server.lock:
            self.server.open_count -= 1
            self.server.closed.append(self.log_name)

    def next_event(self) -> Optional[ProbeEvent]:
        if self.server.delay:
            time.sleep(self.server.delay)
        with self.server.lock:
            self.server.reads[self.log_name] = self.server.reads.get(self.log_name, 0) + 1
        if self.log_name in self.server.read_errors and self.position > 0:
            raise StreamReadError(f"{self.log_name}: lost connection", self.log_name)
        events = self.server.events[self.log_name]
        if self.position >= len(events):
            return None
        event = events[self.position]
        self.position += 1
        return event


@pytest.fixture
def logger() -> Logger:
    return Logger(stream=io.StringIO(), verbose=True)


@pytest.fixture
def settings() -> dict:
    return {"host": "127.0.0.1", "port": 3306, "user": "root", "password": ""}
