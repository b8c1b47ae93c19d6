"""
租户解析器 - 纯函数，不抛异常
"""

import logging
from typing import Optional

from ..conf import lms_settings
from .context import EMPTY_CONTEXT, RequestContext, ScopeContext, normalize_tenant_id


logger = logging.getLogger(__name__)


def is_exempt(principal) -> bool:
    """主体是否为跨租户豁免角色"""
    if principal is None:
        return False
    return getattr(principal, 'role', None) == lms_settings.EXEMPT_ROLE


def resolve_tenant_id(principal, request_context: Optional[RequestContext] = None) -> Optional[str]:
    """
    解析当前操作的有效租户ID

    1. 豁免角色 -> None（不限制），优先于任何提示头
    2. 主体绑定了租户 -> 该租户
    3. 请求携带租户提示头 -> 提示值
    4. 否则 -> None；过滤器将其视为"不加条件"而不是"全部拒绝"

    Args:
        principal: 暴露 id / role / tenant_id 的对象，可为None
        request_context: 请求上下文

    Returns:
        Optional[str]: 租户ID，None表示不限制
    """
    if is_exempt(principal):
        return None

    tenant_id = normalize_tenant_id(getattr(principal, 'tenant_id', None))
    if tenant_id is not None:
        return tenant_id

    return (request_context or EMPTY_CONTEXT).tenant_hint


def resolve_scope(principal, request_context: Optional[RequestContext] = None) -> ScopeContext:
    """解析作用域，并记录不限制的原因"""
    request_context = request_context or EMPTY_CONTEXT

    if is_exempt(principal):
        return ScopeContext.exempt()

    tenant_id = resolve_tenant_id(principal, request_context)
    if tenant_id is not None:
        return ScopeContext.for_tenant(tenant_id)

    if request_context.system:
        return ScopeContext.system()

    if lms_settings.FAIL_OPEN_ON_UNRESOLVED_TENANT:
        logger.warning(
            f"Tenant unresolved for non-exempt principal "
            f"{getattr(principal, 'id', None)}; applying no tenant filter"
        )
        return ScopeContext.unresolved()

    return ScopeContext.denied()
