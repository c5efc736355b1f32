"""
Entry point for running GymLog as a module.

Usage:
    python -m gymlog stats
    python -m gymlog --help
"""

from gymlog.app.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
