"""Entry point for ``python -m desk_treadmill``."""

import sys

from .main import main

sys.exit(main())
