"""Allow ``python -m privacy_analyzer``."""

import sys

from privacy_analyzer import cli

sys.exit(cli.main())
