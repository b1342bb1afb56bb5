"""
HTTP middleware for the LinxIQ API.
"""
from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
