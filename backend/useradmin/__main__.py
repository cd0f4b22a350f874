"""Allow ``python -m useradmin``."""

from useradmin.cli import main

if __name__ == "__main__":
    main()
