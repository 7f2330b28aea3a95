"""Allow running golog as ``python -m golog``."""

import sys

from golog.cli import main

sys.exit(main())
