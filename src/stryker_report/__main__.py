"""Allow ``python -m stryker_report``."""

import sys

from stryker_report.cli import main

sys.exit(main())
