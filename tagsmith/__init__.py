"""tagsmith: corpus-consistent structured tagging for document libraries."""

__version__ = "0.3.0"
