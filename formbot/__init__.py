"""LINE webhook that looks up forms in a Google Sheet."""

__version__ = "0.1.0"
