"""Entry point: python -m hostkeeper"""

from hostkeeper.cli.app import app

if __name__ == "__main__":
    app()
