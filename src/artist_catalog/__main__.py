"""Entry point for python -m artist_catalog execution.

This module enables running artist-catalog as a module:
    python -m artist_catalog --help
    python -m artist_catalog import ./feed.json
"""

from artist_catalog.cli import app

if __name__ == "__main__":
    app()
