import sys

from citycast.cli import main

sys.exit(main())
