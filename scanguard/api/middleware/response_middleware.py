#middleware/response_middleware
from flask import request, jsonify, make_response
from typing import Optional, Any
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ResponseMiddleware:

    @staticmethod
    def create_error_response(message: str, status_code: int = 400, details: Optional[Any] = None):
        """
        Unified error response with consistent format
        """
        error_data = {
            'success': False,
            'status': 'error',
            'error': message,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'path': request.path,
            'method': request.method
        }

        if details:
            error_data['details'] = details

        if status_code >= 500:
            logger.error(f"API Error: {message} - {request.method} {request.path}")
        else:
            logger.warning(f"API Error: {message} - {request.method} {request.path}")
        return ResponseMiddleware.create_json_response(error_data, status_code)

    @staticmethod
    def create_success_response(data: Any, message: str = "Success", status_code: int = 200,
                                count: Optional[int] = None):
        """
        Unified success response with consistent format
        """
        response_data = {
            'success': True,
            'status': 'success',
            'message': message,
            'data': data,
            'timestamp': datetime.now(timezone.utc).isoformat()
        }
        if count is not None:
            response_data['count'] = count

        return ResponseMiddleware.create_json_response(response_data, status_code)

    @staticmethod
    def create_json_response(data, status_code=200):
        """JSON response helper; CORS headers are added by flask-cors"""
        return make_response(jsonify(data), status_code)


response_middleware = ResponseMiddleware()
