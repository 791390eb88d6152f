"""Entry point for `python -m climb`."""

from climb.cli import cli

if __name__ == "__main__":
    cli()
