"""PageIndex - crawl pages and rank them with TF-IDF."""

__version__ = "0.1.0"
