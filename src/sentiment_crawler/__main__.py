"""Allow ``python -m sentiment_crawler``."""

from .main import run

run()
