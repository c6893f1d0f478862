"""releasebot - new-release classification and collection curation engine."""

__version__ = "0.1.0"
