"""Entry point for the Bookshelf reading tracker."""

from bookshelf.cli import app


def main() -> None:
    """Run the command-line interface."""
    app()


if __name__ == "__main__":
    main()
