"""Allow ``python -m hailstorm``."""

from hailstorm.cli.app import app

app()
