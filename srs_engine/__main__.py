"""
Entry point for running srs-engine as a module.

Usage:
    python -m srs_engine queue
    python -m srs_engine review
    python -m srs_engine --help
"""
from .cli import main

if __name__ == "__main__":
    main()
