"""Run the bridge with ``python -m document_bridge``."""

from .cli import main

if __name__ == "__main__":
    main()
