"""
Entry point for running Faculty Scout as a module.

This allows running the command-line interface with:
    python -m scout
"""

from scout.orchestrator import cli

if __name__ == "__main__":
    cli()
