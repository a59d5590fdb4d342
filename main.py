"""
Main entry point for the Dynamic Form console runner.
"""

import sys

from dynamic_form.cli import main

if __name__ == "__main__":
    sys.exit(main())
