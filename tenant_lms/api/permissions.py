"""
DRF 权限类
"""

import logging

from rest_framework.permissions import BasePermission

from ..constants import SETTINGS_MANAGER_ROLES
from ..tenancy import RequestContext, is_exempt, resolve_tenant_id


logger = logging.getLogger(__name__)


class HasTenantAccess(BasePermission):
    """
    访问租户资源前必须能解析出租户

    super_admin 直接放行；其他主体需要绑定租户（或带有租户提示头）
    """

    message = 'User must be associated with a tenant to access this resource'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if user is None or not getattr(user, 'is_authenticated', False):
            return False

        if is_exempt(user):
            return True

        tenant_id = resolve_tenant_id(user, RequestContext.from_request(request))
        if tenant_id is None:
            logger.warning(
                f"User without tenant trying to access tenant resource: "
                f"user={getattr(user, 'id', None)}, role={getattr(user, 'role', None)}, path={request.path}"
            )
            return False
        return True


class IsTenantAdmin(BasePermission):
    """租户管理员或 super_admin"""

    message = 'Administrator role required'

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        return bool(user and getattr(user, 'is_authenticated', False)
                    and getattr(user, 'role', None) in SETTINGS_MANAGER_ROLES)
