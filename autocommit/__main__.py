"""Entry point for `python -m autocommit`."""

from autocommit.cli.commands import app

if __name__ == "__main__":
    app()
