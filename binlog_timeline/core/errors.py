"""
异常模块
所有可预期的失败都继承 BinlogTimelineError，入口统一捕获后以非零状态退出
"""

from typing import List, Optional


class BinlogTimelineError(Exception):
    """基础异常"""


class ConfigError(BinlogTimelineError):
    """环境变量配置无效"""


class CatalogQueryError(BinlogTimelineError):
    """无法从服务端获取 binlog 列表（致命，发生在分发之前）"""


class ProbeError(BinlogTimelineError):
    """单个 binlog 文件探测失败"""

    def __init__(self, message: str, log_name: Optional[str] = None):
        super().__init__(message)
        self.log_name = log_name


class ReplicationConnectionError(ProbeError, ConnectionError):
    """复制会话无法建立"""


class StreamReadError(ProbeError):
    """会话建立后读取事件失败"""


class EventDecodeError(ProbeError):
    """事件内容无法解析"""


class DispatchError(BinlogTimelineError):
    """至少一个探测失败；failures 按到达顺序保存全部失败"""

    def __init__(self, failures: List[ProbeError]):
        self.failures = list(failures)
        first = self.failures[0] if self.failures else None
        message = str(first) if first else "探测失败"
        if len(self.failures) > 1:
            message += f" (共 {len(self.failures)} 个文件探测失败)"
        super().__init__(message)

    @property
    def first(self) -> Optional[ProbeError]:
        return self.failures[0] if self.failures else None


class GtidError(BinlogTimelineError):
    """GTID 集合相关错误"""


class GtidParseError(GtidError, ValueError):
    """GTID 文本格式错误"""


class GtidSubtractError(GtidError, TypeError):
    """GTID 集合差集计算失败"""


class FormatError(BinlogTimelineError, ValueError):
    """报表渲染时数值/字符串转换失败"""
