"""
DRF 异常处理 - 统一错误响应格式

{"success": false, "error": {"code": ..., "message": ..., "details": ...}}
"""

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from ..exceptions import TenantLMSError


logger = logging.getLogger(__name__)


def _error_response(code, message, status_code, details=None):
    error = {'code': code, 'message': message}
    if details is not None:
        error['details'] = details
    return Response({'success': False, 'error': error}, status=status_code)


def tenant_lms_exception_handler(exc, context):
    """REST_FRAMEWORK['EXCEPTION_HANDLER']"""
    if isinstance(exc, TenantLMSError):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")
        return _error_response(exc.error_code, exc.message, exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    data = response.data
    code = getattr(exc, 'default_code', 'error')
    if isinstance(data, dict) and 'detail' in data and len(data) == 1:
        message = str(data['detail'])
        code = getattr(data['detail'], 'code', None) or code
        details = None
    else:
        message = 'Invalid input'
        details = data

    error_response = _error_response(code, message, response.status_code, details)
    for header in ('WWW-Authenticate', 'Retry-After'):
        if header in response:
            error_response[header] = response[header]
    return error_response

