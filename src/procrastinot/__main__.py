"""Allow running as ``python -m procrastinot``."""

from procrastinot.cli.main import app

if __name__ == "__main__":
    app()
