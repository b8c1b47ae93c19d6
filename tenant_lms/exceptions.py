"""
Tenant LMS 自定义异常
"""

from typing import Optional

from .constants import ErrorCode, HttpStatus


class TenantLMSError(Exception):
    """Tenant LMS 基础异常"""
    status_code = HttpStatus.BAD_REQUEST
    default_error_code = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.default_error_code
        super().__init__(message)


class AuthenticationError(TenantLMSError):
    """认证错误基类"""
    status_code = HttpStatus.UNAUTHORIZED
    default_error_code = ErrorCode.NOT_AUTHENTICATED


class InvalidCredentialsError(AuthenticationError):
    """无效凭据错误"""
    default_error_code = ErrorCode.INVALID_CREDENTIALS


class TokenExpiredError(AuthenticationError):
    """Token过期错误"""
    default_error_code = ErrorCode.TOKEN_EXPIRED


class TokenInvalidError(AuthenticationError):
    """Token无效错误"""
    default_error_code = ErrorCode.TOKEN_INVALID


class UserInactiveError(AuthenticationError):
    """用户未激活错误"""
    default_error_code = ErrorCode.USER_INACTIVE


class EmailAlreadyExistsError(TenantLMSError):
    """邮箱已存在错误"""
    status_code = HttpStatus.CONFLICT
    default_error_code = ErrorCode.EMAIL_ALREADY_EXISTS


class PermissionDenied(TenantLMSError):
    """权限被拒绝错误，与资源不存在区分"""
    status_code = HttpStatus.FORBIDDEN
    default_error_code = ErrorCode.PERMISSION_DENIED


class TenantMismatchError(TenantLMSError):
    """租户归属不一致：跨租户写入或修改实体的租户"""
    status_code = HttpStatus.FORBIDDEN
    default_error_code = ErrorCode.TENANT_MISMATCH


class NotFoundError(TenantLMSError):
    """资源不存在错误"""
    status_code = HttpStatus.NOT_FOUND
    default_error_code = ErrorCode.NOT_FOUND


class TenantNotFoundError(NotFoundError):
    """租户不存在错误"""
    default_error_code = ErrorCode.TENANT_NOT_FOUND


class ValidationError(TenantLMSError):
    """验证错误"""
    pass


class ConfigurationError(TenantLMSError):
    """配置错误"""
    status_code = HttpStatus.INTERNAL_SERVER_ERROR
    default_error_code = ErrorCode.CONFIGURATION_ERROR
