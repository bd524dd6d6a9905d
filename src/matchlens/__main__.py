"""
MatchLens CLI Entry Point

Allows running the package as a module: python -m matchlens
"""


def main():
    """Main entry point for the CLI."""
    from matchlens.cli import app

    app()


if __name__ == "__main__":
    main()
