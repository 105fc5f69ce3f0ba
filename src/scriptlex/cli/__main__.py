"""Main entry point for scriptlex CLI when run as a module."""

from scriptlex.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
