"""Entry point for `python -m hallofshame`."""

import sys

from .cli import main

sys.exit(main())
