"""
日志模块
提供统一的日志功能
"""

import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

class Colors:
    """颜色输出类"""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    NC = '\033[0m'  # No Color

class Logger:
    """日志类（线程安全，探测线程会并发写日志）"""

    def __init__(self, log_file: Optional[Path] = None, verbose: bool = False, stream: Optional[TextIO] = None):
        """
        初始化日志器

        Args:
            log_file: 日志文件路径，如果为None则不写入文件
            verbose: 是否输出 DEBUG 日志
            stream: 控制台输出流，默认 stderr（stdout 留给报表）
        """
        self.log_file = Path(log_file) if log_file else None
        self.verbose = verbose
        self.stream = stream
        self.error_count = 0
        self.warning_count = 0
        self._lock = threading.Lock()

    def _log(self, level: str, message: str, color: str = Colors.NC):
        """内部日志方法"""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        stream = self.stream or sys.stderr
        with self._lock:
            print(f"{color}[{timestamp}] [{level}]{Colors.NC} {message}", file=stream, flush=True)

            # 写入日志文件
            if self.log_file:
                try:
                    with open(self.log_file, "a", encoding="utf-8") as f:
                        f.write(f"[{timestamp}] [{level}] {message}\n")
                except OSError as e:
                    print(f"{Colors.YELLOW}[WARNING]{Colors.NC} 无法写入日志文件 {self.log_file}: {e}", file=stream, flush=True)
                    self.log_file = None

    def debug(self, message: str):
        """调试日志（仅 verbose 模式输出）"""
        if self.verbose:
            self._log("DEBUG", message, Colors.CYAN)

    def info(self, message: str):
        """信息日志"""
        self._log("INFO", message, Colors.BLUE)

    def success(self, message: str):
        """成功日志"""
        self._log("SUCCESS", message, Colors.GREEN)

    def warning(self, message: str):
        """警告日志"""
        with self._lock:
            self.warning_count += 1
        self._log("WARNING", message, Colors.YELLOW)

    def error(self, message: str):
        """错误日志"""
        with self._lock:
            self.error_count += 1
        self._log("ERROR", message, Colors.RED)
