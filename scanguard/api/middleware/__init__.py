from .response_middleware import response_middleware, ResponseMiddleware
from .error_handler import ErrorHandler

__all__ = [
    'response_middleware',
    'ResponseMiddleware',
    'ErrorHandler'
]
