"""
Convenience entry point for running slotquery directly.

Usage: python -m slotquery [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
