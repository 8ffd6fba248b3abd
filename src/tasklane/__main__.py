"""Allow ``python -m tasklane``."""

from tasklane.cli.app import run

if __name__ == "__main__":
    run()
