"""
Entry point for running the CLI as a module.

Usage:
    python -m schemascout <command>
"""

from schemascout.cli.commands import cli

if __name__ == "__main__":
    cli()
