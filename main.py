"""
Campus Events — Entry Point.

`python main.py [upcoming|completed|favorites] [search words]` signs in with
CAMPUS_EMAIL / CAMPUS_PASSWORD and prints the matching events.
"""

import logging

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from src.app import main

if __name__ == "__main__":
    main()
