"""
nflfetch - Typed client for tabular datasets published as static files.

Fetches CSV, Parquet and JSON releases over HTTP with response caching,
request throttling, retry and format-aware decoding.
"""

__version__ = "0.1.0"
__app_name__ = "nflfetch"
