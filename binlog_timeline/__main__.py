import sys

from binlog_timeline.main import main

sys.exit(main())
