"""
租户作用域过滤器

所有租户归属模型的数据访问都经过 TenantScopedRepository：
- 每次构造查询调用一次解析器
- 解析结果为具体租户时注入 tenant_id == 租户 条件（与其他条件 AND）
- 读、更新、删除走同一条路径，写入范围同样被收窄
- 存储层异常原样向上抛出
"""

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, FrozenSet, Optional

from django.db import models
from django.utils import timezone

from ..exceptions import PermissionDenied, TenantMismatchError, ValidationError
from .context import RequestContext, ScopeContext, normalize_tenant_id
from .resolver import resolve_scope


logger = logging.getLogger(__name__)


DEFAULT_TENANT_FIELD = 'tenant_id'


class TenantRegistry:
    """
    租户归属模型注册表

    - register/detach/attach: 进程级配置，在启动阶段使用
    - detached(): 仅对当前上下文（线程/协程）生效的临时卸载，不影响其他请求
    """

    def __init__(self):
        self._fields: Dict[type, str] = {}
        self._detached: Dict[type, str] = {}
        self._lock = threading.Lock()
        self._context_detached: ContextVar[FrozenSet[type]] = ContextVar(
            f'tenant_lms_detached_{id(self)}', default=frozenset()
        )

    @staticmethod
    def _key(model):
        meta = getattr(model, '_meta', None)
        return meta.concrete_model if meta is not None else model

    def register(self, model, field: str = DEFAULT_TENANT_FIELD):
        """注册租户归属模型，默认挂载过滤器"""
        with self._lock:
            self._fields[self._key(model)] = field
        return model

    def is_registered(self, model) -> bool:
        return self._key(model) in self._fields

    def field_for(self, model) -> str:
        return self._fields.get(self._key(model), DEFAULT_TENANT_FIELD)

    def is_scoped(self, model) -> bool:
        """模型是否已注册且过滤器处于挂载状态（含当前上下文的临时卸载）"""
        key = self._key(model)
        if key not in self._fields or key in self._detached:
            return False
        return key not in self._context_detached.get()

    def _check_detachable(self, model, reason: str):
        if not reason:
            raise ValidationError("A reason is required to detach the tenant scope")
        if not self.is_registered(model):
            raise ValidationError(f"Model is not tenant-owned: {model.__name__}")

    def attach(self, model):
        """重新挂载过滤器"""
        with self._lock:
            reason = self._detached.pop(self._key(model), None)
        if reason is not None:
            logger.info(f"Tenant scope re-attached: model={model.__name__}")

    def detach(self, model, reason: str):
        """
        进程级卸载某个模型的过滤器，必须给出原因

        属于启动配置，影响该模型的所有调用方；
        运行时的管理流程请使用 detached() 或 repository.unscoped()
        """
        self._check_detachable(model, reason)

        with self._lock:
            self._detached[self._key(model)] = reason
        logger.warning(f"Tenant scope detached: model={model.__name__}, reason={reason}")

    @contextmanager
    def detached(self, model, reason: str, principal=None):
        """在代码块内临时卸载过滤器，只对当前上下文生效，并写审计"""
        self._check_detachable(model, reason)

        logger.warning(
            f"Tenant scope detached in current context: model={model.__name__}, "
            f"principal={getattr(principal, 'id', None)}, reason={reason}"
        )

        from ..models.audit import AuditLog
        from ..constants import AUDIT_ACTIONS
        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['SCOPE_DETACHED'],
            resource_type=model._meta.model_name,
            metadata={'reason': reason},
        )

        token = self._context_detached.set(self._context_detached.get() | {self._key(model)})
        try:
            yield
        finally:
            self._context_detached.reset(token)

    def scope_for(self, model, principal, request_context: Optional[RequestContext] = None) -> ScopeContext:
        """计算某模型在本次操作中的作用域"""
        if not self.is_scoped(model):
            return ScopeContext.detached()
        return resolve_scope(principal, request_context)

    def models(self):
        return list(self._fields.keys())


# 全局注册表
tenant_registry = TenantRegistry()


def tenant_owned(field: str = DEFAULT_TENANT_FIELD):
    """模型类装饰器：注册为租户归属模型"""
    def decorator(model):
        return tenant_registry.register(model, field=field)
    return decorator


def apply_tenant_scope(queryset, scope: ScopeContext, field: str = DEFAULT_TENANT_FIELD):
    """按作用域收窄查询集"""
    if scope.deny_all:
        return queryset.none()
    if scope.tenant_id is None:
        return queryset
    return queryset.filter(**{field: scope.tenant_id})


class TenantQuerySet(models.QuerySet):
    """支持按作用域过滤的查询集"""

    def for_scope(self, scope: ScopeContext):
        return apply_tenant_scope(self, scope, tenant_registry.field_for(self.model))

    def for_principal(self, principal, request_context: Optional[RequestContext] = None):
        return self.for_scope(tenant_registry.scope_for(self.model, principal, request_context))


class TenantScopedRepository:
    """
    租户归属模型的数据访问边界

    主体与请求上下文显式传入每个操作；作用域每次重新计算
    """

    def __init__(self, model, registry: Optional[TenantRegistry] = None):
        self.model = model
        self.registry = registry or tenant_registry

    @property
    def field(self) -> str:
        return self.registry.field_for(self.model)

    @property
    def _tenant_relation(self) -> Optional[str]:
        # tenant_id 字段对应的关系名 tenant，便于识别 tenant=<obj> 写法
        if self.field.endswith('_id'):
            return self.field[:-3]
        return None

    def _base_queryset(self):
        return self.model._default_manager.all()

    def scope(self, principal, request_context: Optional[RequestContext] = None) -> ScopeContext:
        return self.registry.scope_for(self.model, principal, request_context)

    def queryset(self, principal, request_context: Optional[RequestContext] = None):
        """带作用域的查询集"""
        scope = self.scope(principal, request_context)
        return apply_tenant_scope(self._base_queryset(), scope, self.field)

    def filter(self, principal, request_context=None, *args, **kwargs):
        return self.queryset(principal, request_context).filter(*args, **kwargs)

    def get(self, principal, request_context=None, *args, **kwargs):
        """按条件获取单个实体，不在作用域内时抛出 DoesNotExist"""
        return self.queryset(principal, request_context).get(*args, **kwargs)

    def count(self, principal, request_context=None, **kwargs) -> int:
        return self.filter(principal, request_context, **kwargs).count()

    def exists(self, principal, request_context=None, **kwargs) -> bool:
        return self.filter(principal, request_context, **kwargs).exists()

    def _extract_tenant(self, values: Dict[str, Any]) -> Optional[str]:
        relation = self._tenant_relation
        if relation and relation in values:
            tenant = values.pop(relation)
            return normalize_tenant_id(getattr(tenant, 'pk', tenant))
        if self.field in values:
            return normalize_tenant_id(values.pop(self.field))
        return None

    def create(self, principal, request_context=None, **values):
        """
        创建实体并写入作用域租户

        - 租户作用域：写入解析出的租户，显式指定其他租户视为跨租户写入
        - 不限制作用域：必须显式指定租户
        """
        scope = self.scope(principal, request_context)
        requested = self._extract_tenant(values)

        if scope.deny_all:
            raise PermissionDenied("Tenant could not be resolved for this operation")

        if scope.tenant_id is not None:
            if requested is not None and requested != scope.tenant_id:
                raise TenantMismatchError(
                    f"Cannot create {self.model.__name__} in tenant {requested} "
                    f"from tenant {scope.tenant_id}"
                )
            tenant_id = scope.tenant_id
        else:
            tenant_id = requested
            if tenant_id is None:
                raise ValidationError(f"tenant_id is required to create {self.model.__name__}")

        values[self.field] = tenant_id
        return self.model._default_manager.create(**values)

    def update(self, principal, request_context=None, values: Optional[Dict[str, Any]] = None, **filters) -> int:
        """批量更新作用域内的行，不允许修改租户"""
        values = dict(values or {})
        relation = self._tenant_relation
        if self.field in values or (relation and relation in values):
            raise TenantMismatchError("tenant_id is immutable after creation")

        if 'updated_at' in {f.name for f in self.model._meta.concrete_fields}:
            values.setdefault('updated_at', timezone.now())

        return self.filter(principal, request_context, **filters).update(**values)

    def delete(self, principal, request_context=None, **filters) -> int:
        """删除作用域内的行，返回删除的本模型行数"""
        _, per_model = self.filter(principal, request_context, **filters).delete()
        return per_model.get(self.model._meta.label, 0)

    def unscoped(self, reason: str, principal=None):
        """
        显式、可审计的不过滤查询（管理流程）

        Args:
            reason: 不过滤的原因，写入日志和审计
            principal: 发起的主体
        """
        if not reason:
            raise ValidationError("A reason is required for an unscoped query")

        logger.warning(
            f"Unscoped query: model={self.model.__name__}, "
            f"principal={getattr(principal, 'id', None)}, reason={reason}"
        )

        from ..models.audit import AuditLog
        from ..constants import AUDIT_ACTIONS
        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['UNSCOPED_QUERY'],
            resource_type=self.model._meta.model_name,
            metadata={'reason': reason},
        )
        return self._base_queryset()

    def fetch_for_authorization(self, pk):
        """
        按主键获取实体，绕过租户过滤

        调用方必须随后对结果执行资源策略校验
        """
        return self._base_queryset().get(pk=pk)
