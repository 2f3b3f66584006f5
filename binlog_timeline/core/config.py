"""
配置模块
统一管理所有配置变量
"""

import os
from typing import List, Optional

from binlog_timeline.core.errors import ConfigError

# 无法解析的环境变量，由 Config.validate() 报告
_invalid_env: List[str] = []


def _env_int(name: str, default: int) -> int:
    """读取整数环境变量，无法解析时记录并使用默认值"""
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _invalid_env.append(f"{name}={value!r}")
        return default


class Config:
    """配置类"""

    # MySQL 配置
    MYSQL_HOST = os.environ.get("MYSQL_HOST", "localhost")
    MYSQL_PORT = _env_int("MYSQL_PORT", 3306)
    MYSQL_USER = os.environ.get("MYSQL_USER", "root")
    MYSQL_PASSWORD = os.environ.get("MYSQL_PASSWORD")

    # 探测配置
    BINLOG_PARALLEL = _env_int("BINLOG_PARALLEL", 5)
    BINLOG_SERVER_ID_BASE = _env_int("BINLOG_SERVER_ID_BASE", 33061)
    BINLOG_PROBE_MAX_EVENTS = _env_int("BINLOG_PROBE_MAX_EVENTS", 3)
    BINLOG_PROBE_TIMEOUT = _env_int("BINLOG_PROBE_TIMEOUT", 30)  # 秒, 0 表示不限制

    # 报表配置
    REPORT_TZ = os.environ.get("REPORT_TZ", "")
    REPORT_FORMAT = os.environ.get("REPORT_FORMAT", "table")

    # 日志配置
    LOG_FILE = os.environ.get("LOG_FILE")

    @classmethod
    def from_env(cls) -> None:
        """重新读取环境变量（测试或长驻进程中环境变化后使用）"""
        _invalid_env.clear()
        cls.MYSQL_HOST = os.environ.get("MYSQL_HOST", "localhost")
        cls.MYSQL_PORT = _env_int("MYSQL_PORT", 3306)
        cls.MYSQL_USER = os.environ.get("MYSQL_USER", "root")
        cls.MYSQL_PASSWORD = os.environ.get("MYSQL_PASSWORD")
        cls.BINLOG_PARALLEL = _env_int("BINLOG_PARALLEL", 5)
        cls.BINLOG_SERVER_ID_BASE = _env_int("BINLOG_SERVER_ID_BASE", 33061)
        cls.BINLOG_PROBE_MAX_EVENTS = _env_int("BINLOG_PROBE_MAX_EVENTS", 3)
        cls.BINLOG_PROBE_TIMEOUT = _env_int("BINLOG_PROBE_TIMEOUT", 30)
        cls.REPORT_TZ = os.environ.get("REPORT_TZ", "")
        cls.REPORT_FORMAT = os.environ.get("REPORT_FORMAT", "table")
        cls.LOG_FILE = os.environ.get("LOG_FILE")

    # 获取 MySQL 密码
    @classmethod
    def get_mysql_password(cls) -> Optional[str]:
        """获取 MySQL 密码，未配置时返回 None（由调用方决定是否提示输入）"""
        return cls.MYSQL_PASSWORD

    # 获取探测超时
    @classmethod
    def get_probe_timeout(cls) -> Optional[int]:
        """获取单个探测的网络超时（秒），0 或负数表示不限制"""
        if cls.BINLOG_PROBE_TIMEOUT <= 0:
            return None
        return cls.BINLOG_PROBE_TIMEOUT

    @classmethod
    def validate(cls) -> None:
        """
        检查环境变量

        Raises:
            ConfigError: 存在无法解析为整数的环境变量
        """
        if _invalid_env:
            raise ConfigError(f"环境变量不是有效的整数: {', '.join(_invalid_env)}")
