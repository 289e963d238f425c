"""Entry point for running the CLI directly.

Usage:
    python -m lxcstage create
"""

from .cli.main import cli

if __name__ == "__main__":
    cli()
