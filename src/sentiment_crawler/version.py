"""Version information for the sentiment-crawler package."""

__version__ = "0.1.0"
__version_info__ = (0, 1, 0)

# Default HTTP user agent sent with every fetch
USER_AGENT = "Eurosentiment Crawler"
