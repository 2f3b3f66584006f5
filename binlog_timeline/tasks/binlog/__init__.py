"""
binlog 任务
探测 / 分发 / 时间线重建 / 报表
"""
