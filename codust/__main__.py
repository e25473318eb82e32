"""
Main entry point for the codust CLI.
"""

from codust.cli import cli


def main() -> None:
    """Main function for the codust CLI."""
    cli()


if __name__ == "__main__":
    main()
