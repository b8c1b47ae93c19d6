"""
租户隔离核心：解析器、作用域过滤器、资源策略
"""

from .context import RequestContext, ScopeContext, normalize_tenant_id
from .resolver import is_exempt, resolve_scope, resolve_tenant_id
from .scoping import (
    TenantQuerySet,
    TenantRegistry,
    TenantScopedRepository,
    apply_tenant_scope,
    tenant_owned,
    tenant_registry,
)
from .policies import (
    TenantOwnershipPolicy,
    authorize,
    can,
    guarded_mutation,
    policy_registry,
)

__all__ = [
    'RequestContext',
    'ScopeContext',
    'normalize_tenant_id',
    'is_exempt',
    'resolve_scope',
    'resolve_tenant_id',
    'TenantQuerySet',
    'TenantRegistry',
    'TenantScopedRepository',
    'apply_tenant_scope',
    'tenant_owned',
    'tenant_registry',
    'TenantOwnershipPolicy',
    'authorize',
    'can',
    'guarded_mutation',
    'policy_registry',
]
