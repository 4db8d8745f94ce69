import logging
from typing import Any, Dict, Optional


class BaseService:
    """Base service class providing common functionality"""

    def __init__(self, tenant_id: Optional[str] = None):
        self.tenant_id = str(tenant_id) if tenant_id is not None else None
        self.logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")

    def log_operation(self, operation: str, data: Dict[str, Any]):
        """Centralized operation logging"""
        self.logger.info(
            "Operation: %s", operation,
            extra={
                'operation': operation,
                'data': data,
                'tenant_id': self.tenant_id,
                'service': self.__class__.__name__,
            },
        )
