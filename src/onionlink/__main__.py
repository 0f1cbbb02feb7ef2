"""
Main entry point for running onionlink as a module.

Usage:
    python -m onionlink parse bridges.txt
    python -m onionlink select bridges.txt
    python -m onionlink replay events.jsonl
"""

from .cli import cli

if __name__ == "__main__":
    cli()
