"""
业务服务基类

服务方法统一以 (principal, request_context, ...) 开头，显式传入主体与请求上下文
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.paginator import EmptyPage, Paginator

from ..conf import lms_settings
from ..constants import ACTION_VIEW
from ..exceptions import NotFoundError, ValidationError
from ..log import get_tenant_logger
from ..tenancy import RequestContext, TenantScopedRepository, authorize


logger = logging.getLogger(__name__)


class TenantScopedService:
    """租户作用域服务基类"""

    model = None

    def __init__(self, repository: Optional[TenantScopedRepository] = None):
        self.repository = repository or TenantScopedRepository(self.model)

    def log(self, principal):
        return get_tenant_logger(self.__class__.__module__, principal=principal)

    def get_scoped(self, principal, request_context: Optional[RequestContext], entity_id, action: str = ACTION_VIEW):
        """
        通过作用域查询获取实体，再执行策略校验

        Raises:
            NotFoundError: 作用域内不存在
            PermissionDenied: 策略拒绝
        """
        try:
            entity = self.repository.get(principal, request_context, pk=entity_id)
        except (self.model.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"{self.model.__name__} not found: {entity_id}")

        authorize(principal, action, entity)
        return entity

    def get_parent(self, model, principal, request_context, entity_id):
        """获取作用域内的父实体（如课程下的内容列表），不存在视为 404"""
        repository = TenantScopedRepository(model)
        try:
            entity = repository.get(principal, request_context, pk=entity_id)
        except (model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
            raise NotFoundError(f"{model.__name__} not found: {entity_id}")
        authorize(principal, ACTION_VIEW, entity)
        return entity

    def get_related(self, model, principal, request_context, entity_id, label: str):
        """获取作用域内的关联实体（如报名时的课程）"""
        if entity_id is None:
            return None
        repository = TenantScopedRepository(model)
        try:
            entity = repository.get(principal, request_context, pk=entity_id)
        except (model.DoesNotExist, DjangoValidationError, ValueError):
            raise ValidationError(f"{label} not found: {entity_id}")
        authorize(principal, ACTION_VIEW, entity)
        return entity

    @staticmethod
    def paginate(queryset, page: Any = 1, per_page: Any = None) -> Dict[str, Any]:
        """分页，返回 {items, pagination}"""
        try:
            per_page = int(per_page or lms_settings.PAGE_SIZE)
            page = int(page or 1)
        except (TypeError, ValueError):
            raise ValidationError("page and per_page must be integers")

        per_page = max(1, min(per_page, lms_settings.MAX_PAGE_SIZE))
        paginator = Paginator(queryset, per_page)
        try:
            page_obj = paginator.page(page)
        except EmptyPage:
            page_obj = paginator.page(paginator.num_pages or 1)

        return {
            'items': list(page_obj.object_list),
            'pagination': {
                'current_page': page_obj.number,
                'last_page': paginator.num_pages,
                'per_page': per_page,
                'total': paginator.count,
            }
        }
