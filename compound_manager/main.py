"""Module entry point: ``python -m compound_manager.main``."""
from .cli import main

if __name__ == "__main__":
    main()
