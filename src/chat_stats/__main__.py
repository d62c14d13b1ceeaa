import sys

from chat_stats.cli import main

sys.exit(main())
