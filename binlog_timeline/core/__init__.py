"""
核心模块
提供公共功能和工具函数
"""

from .config import Config
from .logger import Logger, Colors
from .mysql_utils import MySQLUtils, BinlogFile
from .gtid import GtidSet

__all__ = ['Config', 'Logger', 'Colors', 'MySQLUtils', 'BinlogFile', 'GtidSet']
