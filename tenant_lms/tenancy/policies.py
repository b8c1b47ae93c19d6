"""
资源策略 - 对已获取实体的租户归属做第二次显式校验

过滤器收窄列表/查询结果；策略在实体已被获取（可能绕过过滤器）后
决定是否允许对其执行操作。每个变更操作都必须先调用策略。
"""

import logging
from functools import wraps
from typing import Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError

from ..constants import ACTION_DELETE, ACTION_UPDATE, ACTION_VIEW, AUDIT_ACTIONS, POLICY_ACTIONS
from ..exceptions import ConfigurationError, NotFoundError, PermissionDenied
from .context import normalize_tenant_id
from .resolver import is_exempt
from .scoping import TenantScopedRepository


logger = logging.getLogger(__name__)


class TenantOwnershipPolicy:
    """
    租户归属策略

    三个检查形状相同：豁免角色，或主体租户 == 实体租户
    """

    # app_label.model_name
    model_label: Optional[str] = None
    tenant_attr = 'tenant_id'

    def entity_tenant_id(self, entity) -> Optional[str]:
        return normalize_tenant_id(getattr(entity, self.tenant_attr, None))

    def owns(self, principal, entity) -> bool:
        if principal is None:
            return False
        if is_exempt(principal):
            return True
        principal_tenant = normalize_tenant_id(getattr(principal, 'tenant_id', None))
        if principal_tenant is None:
            return False
        return principal_tenant == self.entity_tenant_id(entity)

    def can_view(self, principal, entity) -> bool:
        return self.owns(principal, entity)

    def can_update(self, principal, entity) -> bool:
        return self.owns(principal, entity)

    def can_delete(self, principal, entity) -> bool:
        return self.owns(principal, entity)

    def check(self, principal, action: str, entity) -> bool:
        """按操作名分派"""
        if action not in POLICY_ACTIONS:
            raise ConfigurationError(f"Unknown policy action: {action}")
        return getattr(self, f'can_{action}')(principal, entity)


class CategoryPolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.category'


class CoursePolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.course'


class CourseContentPolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.coursecontent'


class EnrollmentPolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.enrollment'


class ClassSessionPolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.classsession'


class AttendancePolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.attendance'


class InvoicePolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.invoice'


class UserPolicy(TenantOwnershipPolicy):
    model_label = 'tenant_lms.user'


class TenantPolicy(TenantOwnershipPolicy):
    """租户本身：比较租户自己的ID"""
    model_label = 'tenant_lms.tenant'
    tenant_attr = 'pk'


class PolicyRegistry:
    """模型 -> 策略 映射"""

    def __init__(self):
        self._policies: Dict[str, TenantOwnershipPolicy] = {}

    def register(self, policy: TenantOwnershipPolicy, model_label: Optional[str] = None):
        label = (model_label or policy.model_label or '').lower()
        if not label:
            raise ConfigurationError(f"Policy {policy.__class__.__name__} has no model label")
        self._policies[label] = policy
        return policy

    def for_label(self, model_label: str) -> TenantOwnershipPolicy:
        try:
            return self._policies[model_label.lower()]
        except KeyError:
            raise ConfigurationError(f"No policy registered for {model_label}")

    def for_entity(self, entity) -> TenantOwnershipPolicy:
        return self.for_label(entity._meta.label_lower)

    def labels(self):
        return sorted(self._policies.keys())


policy_registry = PolicyRegistry()


DEFAULT_POLICIES = [
    CategoryPolicy,
    CoursePolicy,
    CourseContentPolicy,
    EnrollmentPolicy,
    ClassSessionPolicy,
    AttendancePolicy,
    InvoicePolicy,
    UserPolicy,
    TenantPolicy,
]


def register_default_policies():
    for policy_class in DEFAULT_POLICIES:
        policy_registry.register(policy_class())


def can(principal, action: str, entity, policy: Optional[TenantOwnershipPolicy] = None) -> bool:
    policy = policy or policy_registry.for_entity(entity)
    return policy.check(principal, action, entity)


def authorize(principal, action: str, entity, policy: Optional[TenantOwnershipPolicy] = None):
    """
    校验失败时抛出 PermissionDenied（对调用方可见的禁止访问）

    Raises:
        PermissionDenied: 策略拒绝
    """
    if can(principal, action, entity, policy):
        return

    logger.warning(
        f"Access denied: principal={getattr(principal, 'id', None)}, action={action}, "
        f"entity={entity._meta.label_lower}:{entity.pk}"
    )

    from ..models.audit import AuditLog
    AuditLog.log_action(
        user=principal,
        action=AUDIT_ACTIONS['ACCESS_DENIED'],
        resource_type=entity._meta.model_name,
        resource_id=entity.pk,
        metadata={'action': action},
    )
    raise PermissionDenied(f"Not allowed to {action} this {entity._meta.model_name}")


def guarded_mutation(action: str, model=None):
    """
    变更操作装饰器 - 按主键获取实体后无条件执行策略校验

    被装饰方法签名: (self, principal, request_context, entity_id, ...)
    实际调用时第四个参数替换为已授权的实体。
    默认通过 self.repository (TenantScopedRepository) 获取实体；
    指定 model 时改为获取该模型的实体（如对课程整体排序内容）。

    使用示例:
        @guarded_mutation(ACTION_UPDATE)
        def update_course(self, principal, request_context, course, data):
            ...
    """
    if action not in POLICY_ACTIONS:
        raise ConfigurationError(f"Unknown policy action: {action}")

    def decorator(method):
        @wraps(method)
        def wrapper(self, principal, request_context, entity_id, *args, **kwargs):
            repository = TenantScopedRepository(model) if model is not None else self.repository
            try:
                entity = repository.fetch_for_authorization(entity_id)
            except (repository.model.DoesNotExist, DjangoValidationError, ValueError, TypeError):
                raise NotFoundError(f"{repository.model.__name__} not found: {entity_id}")

            authorize(principal, action, entity)
            return method(self, principal, request_context, entity, *args, **kwargs)

        wrapper.guarded_action = action
        return wrapper
    return decorator


__all__ = [
    'ACTION_VIEW',
    'ACTION_UPDATE',
    'ACTION_DELETE',
    'TenantOwnershipPolicy',
    'CategoryPolicy',
    'CoursePolicy',
    'CourseContentPolicy',
    'EnrollmentPolicy',
    'ClassSessionPolicy',
    'AttendancePolicy',
    'InvoicePolicy',
    'UserPolicy',
    'TenantPolicy',
    'PolicyRegistry',
    'policy_registry',
    'register_default_policies',
    'can',
    'authorize',
    'guarded_mutation',
]
