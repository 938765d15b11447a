"""
Entry point for `python -m oapclient`.

Usage:
    python -m oapclient feeds
    python -m oapclient sync --kind scap
    python -m oapclient save-settings method_data:max_rows=1000
"""

from .ui.cli import main

main()
