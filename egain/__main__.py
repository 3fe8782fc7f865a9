"""Exporter entrypoint.

Usage: python -m egain
"""

from egain.service import main

if __name__ == "__main__":
    main()
