#!/usr/bin/env python3
"""
MySQL binlog 时间线工具 - 统一入口

用法:
    binlog-timeline [-h HOST] [-P PORT] [-u USER] [-p PASSWORD] [-n PARALLEL] [-v]

对每个 binlog 文件输出: 文件名、大小、开始时间、结束时间、持续时长、文件内产生的 GTID。
只读取每个文件开头的少量事件，不需要完整解析 binlog。

环境变量:
    MYSQL_HOST / MYSQL_PORT / MYSQL_USER / MYSQL_PASSWORD
    BINLOG_PARALLEL / BINLOG_SERVER_ID_BASE / BINLOG_PROBE_MAX_EVENTS / BINLOG_PROBE_TIMEOUT
    REPORT_TZ / REPORT_FORMAT / LOG_FILE
"""

import argparse
import getpass
import sys
from typing import List, Optional

from binlog_timeline.core.config import Config
from binlog_timeline.core.errors import BinlogTimelineError
from binlog_timeline.core.logger import Colors, Logger


def build_parser() -> argparse.ArgumentParser:
    """构建命令行参数解析器（-h 用于主机名，帮助使用 --help）"""
    parser = argparse.ArgumentParser(
        prog="binlog-timeline",
        description="MySQL binlog 时间线工具",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
        add_help=False,
    )
    parser.add_argument('--help', action='help', help='显示帮助信息')
    parser.add_argument('-h', '--host', default=None, help=f'MySQL 主机 (默认: {Config.MYSQL_HOST})')
    parser.add_argument('-P', '--port', type=int, default=None, help=f'MySQL 端口 (默认: {Config.MYSQL_PORT})')
    parser.add_argument('-u', '--user', default=None, help=f'MySQL 用户 (默认: {Config.MYSQL_USER})')
    parser.add_argument('-p', '--password', default=None, help='MySQL 密码（未指定时交互式输入）')
    parser.add_argument('-v', '--verbose', action='store_true', help='输出详细日志')
    parser.add_argument('-n', '--parallel', type=int, default=None,
                        help=f'并发探测数 (默认: {Config.BINLOG_PARALLEL})')
    parser.add_argument('--server-id-base', type=int, default=None,
                        help=f'复制客户端 server_id 基数 (默认: {Config.BINLOG_SERVER_ID_BASE})')
    parser.add_argument('--max-events', type=int, default=None,
                        help=f'每个文件最多读取的事件数 (默认: {Config.BINLOG_PROBE_MAX_EVENTS})')
    parser.add_argument('--timeout', type=int, default=None,
                        help=f'连接/读取超时秒数, 0 表示不限制 (默认: {Config.BINLOG_PROBE_TIMEOUT})')
    parser.add_argument('--format', dest='fmt', choices=['table', 'markdown', 'tsv'], default=None,
                        help=f'输出格式 (默认: {Config.REPORT_FORMAT})')
    parser.add_argument('--tz', default=None, help='时间显示时区, 如 Asia/Shanghai (默认: 本地时区)')
    parser.add_argument('--newest-first', action='store_true', help='按从新到旧输出')
    parser.add_argument('--no-gtid-executed', dest='use_gtid_executed', action='store_false',
                        help='不查询 gtid_executed（最新文件的 GTID 列留空）')
    parser.add_argument('--log-file', default=None, help='日志文件路径')
    return parser


def resolve_password(password: Optional[str]) -> str:
    """命令行 > 环境变量 > 交互式输入"""
    if password is not None:
        return password
    configured = Config.get_mysql_password()
    if configured is not None:
        return configured
    return getpass.getpass("请输入 MySQL 密码: ")


def main(argv: Optional[List[str]] = None) -> int:
    """主函数"""
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = Logger(log_file=args.log_file or Config.LOG_FILE, verbose=args.verbose)

    try:
        Config.validate()

        from binlog_timeline.core.mysql_utils import MySQLUtils
        from binlog_timeline.tasks.binlog.report import run

        timeout = args.timeout if args.timeout is not None else Config.BINLOG_PROBE_TIMEOUT
        mysql = MySQLUtils(
            logger=logger,
            host=args.host,
            port=args.port,
            user=args.user,
            password=resolve_password(args.password),
            timeout=max(timeout, 0),
        )
        run(
            mysql,
            concurrency=args.parallel,
            server_id_base=args.server_id_base,
            max_events=args.max_events,
            fmt=args.fmt,
            newest_first=args.newest_first,
            use_gtid_executed=args.use_gtid_executed,
            timezone_name=args.tz,
            logger=logger,
        )
    except KeyboardInterrupt:
        print(f"\n{Colors.YELLOW}已取消{Colors.NC}", file=sys.stderr)
        return 130
    except ImportError as e:
        print(f"{Colors.RED}错误: 无法导入模块: {e}{Colors.NC}", file=sys.stderr)
        return 1
    except (BinlogTimelineError, ValueError) as e:
        print(f"{Colors.RED}错误: {e}{Colors.NC}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"{Colors.RED}错误: {type(e).__name__}: {e}{Colors.NC}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
