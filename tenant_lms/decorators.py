"""
Tenant LMS 装饰器 - 普通 Django 视图的租户与策略检查
"""

import logging
from functools import wraps

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import JsonResponse

from .constants import ACTION_DELETE, ACTION_UPDATE, ACTION_VIEW, ErrorCode, HttpStatus
from .exceptions import PermissionDenied
from .tenancy import RequestContext, authorize, is_exempt, resolve_tenant_id


logger = logging.getLogger(__name__)


def _error(message, code, status):
    return JsonResponse({'success': False, 'error': {'code': code, 'message': message}}, status=status)


def _resolve_principal(request, principal, *args, **kwargs):
    """
    获取请求主体

    先按 principal 表达式取值（默认 request.user），取不到已认证主体时
    回退到 Authorization: Bearer 令牌
    """
    value = _resolve_value(principal, request, *args, **kwargs)
    if value is not None and getattr(value, 'is_authenticated', False) and hasattr(value, 'role'):
        return value

    header = request.META.get('HTTP_AUTHORIZATION', '')
    parts = header.split()
    if len(parts) == 2 and parts[0].lower() == 'bearer':
        from .services.auth_service import AuthService
        return AuthService().get_user_from_token(parts[1])
    return None


def require_tenant_access(principal='request.user'):
    """
    要求能为当前请求解析出租户（super_admin 除外）

    使用示例:
        @require_tenant_access()
        def dashboard(request):
            ...
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = _resolve_principal(request, principal, *args, **kwargs)
            if user is None:
                return _error('Authentication required', ErrorCode.NOT_AUTHENTICATED, HttpStatus.UNAUTHORIZED)

            if not is_exempt(user) and resolve_tenant_id(user, RequestContext.from_request(request)) is None:
                logger.warning(f"Tenant access denied: user={user.id}, path={request.path}")
                return _error('Unauthorized tenant access', ErrorCode.TENANT_REQUIRED, HttpStatus.FORBIDDEN)

            request.principal = user
            return view_func(request, *args, **kwargs)

        return wrapper
    return decorator


def require_policy(model, action, entity_id='pk', principal='request.user', as_kwarg=None):
    """
    资源策略检查装饰器

    按主键取出实体（不经过租户过滤），再对主体执行资源策略；
    实体不存在返回404，策略拒绝返回403

    Args:
        model: 租户归属模型
        action: view / update / delete
        entity_id: 实体ID的获取方式
            - 从参数获取: "course_id" (视图参数)
            - 从request获取: "request.GET.course_id"
        principal: 主体的获取方式，默认 request.user
        as_kwarg: 把已授权的实体以该参数名传给视图

    使用示例:
        @require_policy(Course, 'update', entity_id='course_id', as_kwarg='course')
        def edit_course(request, course_id, course):
            # 有权限才执行这里
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            user = _resolve_principal(request, principal, *args, **kwargs)
            if user is None:
                return _error('Authentication required', ErrorCode.NOT_AUTHENTICATED, HttpStatus.UNAUTHORIZED)

            pk = _resolve_value(entity_id, request, *args, **kwargs)
            if not pk:
                return _error('Entity ID required', ErrorCode.VALIDATION_ERROR, HttpStatus.BAD_REQUEST)

            try:
                entity = model._default_manager.get(pk=pk)
            except (model.DoesNotExist, DjangoValidationError, ValueError):
                return _error(f'{model.__name__} not found', ErrorCode.NOT_FOUND, HttpStatus.NOT_FOUND)

            try:
                authorize(user, action, entity)
            except PermissionDenied as e:
                return _error(e.message, e.error_code, HttpStatus.FORBIDDEN)

            request.principal = user
            if as_kwarg:
                kwargs[as_kwarg] = entity
            return view_func(request, *args, **kwargs)

        return wrapper
    return decorator


def _resolve_value(value, request, *args, **kwargs):
    """
    解析参数值，支持多种来源

    Args:
        value: 要解析的值，可以是字符串或直接值
        request: Django request对象
        *args: 函数位置参数
        **kwargs: 函数关键字参数

    Returns:
        解析后的实际值
    """
    if not isinstance(value, str):
        return value

    if value.startswith('request.'):
        # 从request对象获取，如 "request.user"
        return _get_nested_attr(request, value[len('request.'):])

    if '.' in value:
        # 从参数对象获取，如 "course.id"
        obj_name, attr_path = value.split('.', 1)
        if obj_name in kwargs:
            return _get_nested_attr(kwargs[obj_name], attr_path)
        raise ValueError(f"Parameter '{obj_name}' not found in view function")

    if value in kwargs:
        return kwargs[value]

    return value


def _get_nested_attr(obj, attr_path):
    """
    获取嵌套属性值，支持 dict / QueryDict

    Args:
        obj: 对象
        attr_path: 属性路径，如 "user.id" 或 "GET.course_id"
    """
    current = obj
    for attr in attr_path.split('.'):
        if hasattr(current, 'get') and not hasattr(current, attr):
            current = current.get(attr)
        else:
            current = getattr(current, attr, None)
        if current is None:
            return None
    return current


# 便捷装饰器别名
def require_view_policy(model, entity_id='pk', **kwargs):
    """查看权限检查"""
    return require_policy(model, ACTION_VIEW, entity_id=entity_id, **kwargs)


def require_update_policy(model, entity_id='pk', **kwargs):
    """修改权限检查"""
    return require_policy(model, ACTION_UPDATE, entity_id=entity_id, **kwargs)


def require_delete_policy(model, entity_id='pk', **kwargs):
    """删除权限检查"""
    return require_policy(model, ACTION_DELETE, entity_id=entity_id, **kwargs)
