"""Entry point for ``python -m autohide``"""
import sys

from autohide.cli import main

sys.exit(main())
