"""Main entry point for running awaithttp as a module.

Usage:
    python -m awaithttp get <url>
    python -m awaithttp --help
"""

from awaithttp.cli import main

if __name__ == '__main__':
    main()
