"""
Entry point for running the CLI as a module.

Usage:
    python -m src.cli --help
    python -m src.cli learn 12
"""
from .main import main

if __name__ == "__main__":
    main()
