"""
reviewdesk entry point.

Equivalent to the ``reviewdesk`` console script.
"""

from reviewdesk.cli import app

if __name__ == "__main__":
    app()
