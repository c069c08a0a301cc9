"""
Base Service Classes
====================

Base classes dan utilities untuk semua services
"""

from abc import ABC
from typing import Any, Dict, List, Optional, Sequence, Type
from datetime import date, datetime
from decimal import Decimal
import logging

from pydantic import BaseModel as PydanticModel
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .gateway import PersistenceGateway

logger = logging.getLogger(__name__)


def json_safe(value: Any) -> Any:
    """Konversi nilai agar bisa disimpan di kolom JSON (metadata, gateway response)"""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


def validate_input(schema: Type[PydanticModel], data: Any) -> PydanticModel:
    """Validasi input dengan pydantic schema; error pertama dikonversi ke ValidationError domain"""
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = '.'.join(str(part) for part in first.get('loc', ()))
        message = first.get('msg', 'Invalid input')
        if field:
            message = f"{field}: {message}"
        errors = [{'field': '.'.join(str(part) for part in err.get('loc', ())), 'message': err.get('msg')}
                  for err in e.errors()]
        raise ValidationError(message, field=field or None, details={'errors': errors}) from e


class BaseService(ABC):
    """Base service class dengan common functionality"""

    def __init__(self, gateway: PersistenceGateway, notification_service=None):
        self.gateway = gateway
        self.notification_service = notification_service
        self.logger = logging.getLogger(self.__class__.__name__)

    def _pagination(self, page: int, per_page: int, total: int) -> Dict[str, Any]:
        pages = (total + per_page - 1) // per_page if total > 0 else 1
        return {
            'page': page,
            'per_page': per_page,
            'total': total,
            'pages': pages,
            'has_prev': page > 1,
            'has_next': page < pages
        }

    async def _paginate_query(self, model_class, filters: Dict[str, Any] = None,
                              order_by: Sequence[str] = ('-created_at',), page: int = 1,
                              per_page: int = 20, max_per_page: int = 100,
                              any_of: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """Paginate rows dengan total count yang exact"""
        page = max(page, 1)
        per_page = max(min(per_page, max_per_page), 1)

        items, total = await self.gateway.find_many(
            model_class, filters, any_of=any_of, order_by=order_by,
            limit=per_page, offset=(page - 1) * per_page, with_count=True
        )
        return {
            'items': items,
            'pagination': self._pagination(page, per_page, total)
        }

    async def _send_notification(self, event: str, *args, **kwargs) -> None:
        """Dispatch event ke notification service; kegagalan hanya di-log"""
        if not self.notification_service:
            return
        try:
            handler = getattr(self.notification_service, event)
            await handler(*args, **kwargs)
        except Exception as e:
            self.logger.warning(f"Failed to send notification '{event}': {str(e)}")
