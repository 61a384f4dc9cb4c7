"""Entry point for running OpenRoad as a module.

Usage:
    python -m openroad [command] [options]

Example:
    python -m openroad analyze https://github.com/pallets/flask
    python -m openroad check
"""

from openroad.cli import app

if __name__ == "__main__":
    app()
