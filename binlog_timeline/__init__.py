"""MySQL binlog 时间线工具"""

__version__ = "1.0.0"
