"""Allow ``python -m ttl_cache``."""

import sys

from .cli import main

sys.exit(main())
