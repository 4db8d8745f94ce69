import functools
import logging
from typing import Any, Dict, List, Optional

from flask import jsonify, request, Response
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)


class APIResponse:
    """Standardized API response handler"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200) -> Response:
        """Standard success response"""
        response_data = {
            'success': True,
            'message': message,
            'data': data
        }
        return jsonify(response_data), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400) -> Response:
        """Standard error response"""
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {}
        }
        return jsonify(response_data), status_code

    @staticmethod
    def validation_error(errors: Dict[str, List[str]], message: str = "Validation failed") -> Response:
        """Validation error response"""
        return APIResponse.error(
            message=message,
            errors=errors,
            status_code=422
        )

    @staticmethod
    def not_found(resource: str = "Resource") -> Response:
        """404 error response"""
        return APIResponse.error(
            message=f"{resource} not found",
            status_code=404
        )

    @staticmethod
    def handle_request_content():
        """Smart request content handling"""
        if request.is_json:
            payload = request.get_json(silent=True)
            return payload if isinstance(payload, dict) else {}
        elif request.form:
            return request.form.to_dict()
        else:
            return {}


def api_route(func):
    """Decorator for API routes with consistent error handling"""
    from ..services.bom_engine.errors import NotBomManagedError, ProductNotFoundError
    from ..utils.validation_helpers import ValidationError

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            return APIResponse.validation_error(e.errors)
        except ProductNotFoundError as e:
            return APIResponse.not_found(f"Product {e.product_id}")
        except NotBomManagedError as e:
            return APIResponse.validation_error({'product_id': [str(e)]}, message=str(e))
        except ValueError as e:
            return APIResponse.validation_error({'general': [str(e)]})
        except DBAPIError:
            raise
        except Exception:
            logger.exception("API error in %s", func.__name__)
            return APIResponse.error("Internal server error", status_code=500)

    return wrapper


__all__ = ['APIResponse', 'api_route']
