"""
MySQL 工具模块
提供 MySQL 相关的工具函数
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pymysql
import pymysql.cursors

from .config import Config
from .errors import CatalogQueryError
from .logger import Logger


@dataclass(frozen=True)
class BinlogFile:
    """SHOW BINARY LOGS 中的一行"""
    name: str
    size: Any  # 服务端返回 int，也兼容字符串


class MySQLUtils:
    """MySQL 工具类"""

    def __init__(self, logger: Optional[Logger] = None, host: Optional[str] = None, port: Optional[int] = None,
                 user: Optional[str] = None, password: Optional[str] = None, timeout: Optional[int] = None,
                 connect: Optional[Callable[..., Any]] = None):
        """
        初始化 MySQL 工具

        Args:
            logger: 日志器实例
            host/port/user/password: 连接参数，未指定时使用 Config
            timeout: 连接/读取超时（秒），None 表示使用 Config
            connect: 连接工厂，默认 pymysql.connect
        """
        self.logger = logger or Logger()
        self.host = host or Config.MYSQL_HOST
        self.port = int(port or Config.MYSQL_PORT)
        self.user = user or Config.MYSQL_USER
        self.password = password if password is not None else (Config.get_mysql_password() or "")
        self.timeout = timeout if timeout is not None else Config.get_probe_timeout()
        self._connect = connect or pymysql.connect

    def connection_settings(self) -> Dict[str, Any]:
        """
        获取连接参数（目录查询与复制会话共用）

        Returns:
            pymysql.connect 可接受的关键字参数
        """
        settings: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
        }
        if self.timeout:
            settings["connect_timeout"] = self.timeout
            settings["read_timeout"] = self.timeout
        return settings

    def _query(self, sql: str) -> List[Dict[str, Any]]:
        """执行查询并返回全部行（DictCursor）"""
        conn = self._connect(
            cursorclass=pymysql.cursors.DictCursor,
            charset='utf8mb4',
            **self.connection_settings()
        )
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql)
                return list(cursor.fetchall())
        finally:
            conn.close()

    def list_binary_logs(self) -> List[BinlogFile]:
        """
        获取服务端已知的 binlog 文件列表

        Returns:
            按服务端顺序（从旧到新）排列的 BinlogFile 列表

        Raises:
            CatalogQueryError: 连接或查询失败
        """
        self.logger.debug(f"连接 {self.host}:{self.port} 执行 SHOW BINARY LOGS")
        try:
            rows = self._query("SHOW BINARY LOGS")
        except pymysql.MySQLError as e:
            raise CatalogQueryError(f"执行 SHOW BINARY LOGS 失败: {e}") from e

        files = []
        for row in rows:
            try:
                files.append(BinlogFile(name=row["Log_name"], size=row["File_size"]))
            except KeyError as e:
                raise CatalogQueryError(f"SHOW BINARY LOGS 结果缺少列: {e}") from e
        return files

    def get_gtid_executed(self) -> Optional[str]:
        """
        获取 @@GLOBAL.gtid_executed

        Returns:
            GTID 集合文本；查询失败时返回 None
        """
        try:
            rows = self._query("SELECT @@GLOBAL.gtid_executed AS gtid_executed")
        except pymysql.MySQLError as e:
            self.logger.warning(f"无法获取 gtid_executed，最新 binlog 的 GTID 列将留空: {e}")
            return None
        if not rows:
            return None
        value = rows[0].get("gtid_executed")
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or ""
