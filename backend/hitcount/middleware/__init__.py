"""
Middleware package.
"""
from hitcount.middleware.error_handler import ErrorHandlerMiddleware
from hitcount.middleware.request_id import RequestIdMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
    "RequestIdMiddleware",
]
