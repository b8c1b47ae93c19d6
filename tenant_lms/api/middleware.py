"""
租户上下文中间件
"""

import logging

from ..tenancy import RequestContext


logger = logging.getLogger(__name__)


class TenantContextMiddleware:
    """
    把 X-Tenant-ID 请求头读成 request.tenant_context

    只是提示值：解析器中主体自身的租户始终优先于请求头
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.tenant_context = RequestContext.from_request(request)
        return self.get_response(request)
