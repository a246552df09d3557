"""Allow ``python -m twitch_auth``."""

import sys

from .cli import main


sys.exit(main())
