# =============================================================================
# cardsmith/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables `python -m cardsmith.cli <subcommand>`; delegates to sync.main().
# =============================================================================

"""Allow ``python -m cardsmith.cli`` execution."""

import sys

from cardsmith.cli.sync import main

sys.exit(main())
