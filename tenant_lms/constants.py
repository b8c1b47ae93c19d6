"""
Tenant LMS 常量定义

所有枚举值在代码层面约束，不在数据库层面约束
"""

from typing import Any, Dict, List

# 跨租户豁免角色
EXEMPT_ROLE = 'super_admin'

# 用户角色
ROLE_SUPER_ADMIN = 'super_admin'
ROLE_ADMIN = 'admin'
ROLE_STAFF = 'staff'
ROLE_INSTRUCTOR = 'instructor'
ROLE_TUTOR = 'tutor'
ROLE_STUDENT = 'student'

USER_ROLES: List[str] = [
    ROLE_SUPER_ADMIN,
    ROLE_ADMIN,
    ROLE_STAFF,
    ROLE_INSTRUCTOR,
    ROLE_TUTOR,
    ROLE_STUDENT,
]

# 可以管理租户设置的角色
SETTINGS_MANAGER_ROLES: List[str] = [ROLE_SUPER_ADMIN, ROLE_ADMIN]

# 可以创建、删除用户及修改角色的角色
USER_MANAGER_ROLES: List[str] = [ROLE_SUPER_ADMIN, ROLE_ADMIN]

# 租户标识请求头
TENANT_HEADER = 'X-Tenant-ID'

# 租户状态
TENANT_STATUSES = {
    'ACTIVE': 'active',
    'INACTIVE': 'inactive',
    'SUSPENDED': 'suspended',
}

# 课程状态
COURSE_STATUSES = {
    'DRAFT': 'draft',
    'PUBLISHED': 'published',
    'ARCHIVED': 'archived',
}

COURSE_LEVELS = ['beginner', 'intermediate', 'advanced']

# 报名状态
ENROLLMENT_STATUSES = {
    'ACTIVE': 'active',
    'COMPLETED': 'completed',
    'CANCELLED': 'cancelled',
    'SUSPENDED': 'suspended',
}

# 课堂状态
SESSION_STATUSES = {
    'SCHEDULED': 'scheduled',
    'COMPLETED': 'completed',
    'CANCELLED': 'cancelled',
}

# 课程内容类型：module > chapter > lesson
CONTENT_TYPES = {
    'MODULE': 'module',
    'CHAPTER': 'chapter',
    'LESSON': 'lesson',
}

# 各内容类型允许的父节点类型，None 表示顶层
CONTENT_PARENT_TYPES: Dict[str, Any] = {
    'module': None,
    'chapter': 'module',
    'lesson': 'chapter',
}

# 出勤状态
ATTENDANCE_STATUSES = {
    'PRESENT': 'present',
    'ABSENT': 'absent',
    'LATE': 'late',
    'EXCUSED': 'excused',
    'PARTIAL': 'partial',
}

# 账单状态
INVOICE_STATUSES = {
    'PENDING': 'pending',
    'PAID': 'paid',
    'OVERDUE': 'overdue',
    'CANCELLED': 'cancelled',
}

# 资源操作
ACTION_VIEW = 'view'
ACTION_UPDATE = 'update'
ACTION_DELETE = 'delete'
POLICY_ACTIONS: List[str] = [ACTION_VIEW, ACTION_UPDATE, ACTION_DELETE]

# 作用域原因
SCOPE_TENANT = 'tenant'
SCOPE_EXEMPT = 'exempt'
SCOPE_SYSTEM = 'system'
SCOPE_UNRESOLVED = 'unresolved'
SCOPE_DENIED = 'denied'
SCOPE_DETACHED = 'detached'

# 租户设置默认值 (按分区)
DEFAULT_TENANT_SETTINGS: Dict[str, Dict[str, Any]] = {
    'general': {
        'timezone': 'UTC',
        'language': 'en',
        'date_format': 'Y-m-d',
        'time_format': 'H:i:s',
        'currency': 'USD',
        'max_users': 100,
        'max_courses': 50,
        'storage_limit': 1000,
    },
    'branding': {
        'logo_url': None,
        'favicon_url': None,
        'brand_name': None,
        'brand_tagline': None,
        'contact_email': None,
        'contact_phone': None,
        'social_links': {},
    },
    'features': {
        'enable_certificates': False,
        'enable_recordings': False,
        'enable_invoices': True,
        'enable_exams': False,
        'default_class_duration': 60,
    },
    'theme': {
        'mode': 'light',
        'primary_color': '#2563eb',
        'secondary_color': '#64748b',
        'font_family': 'Inter',
        'config': {},
    },
    'security': {
        'session_timeout': 120,
        'require_two_factor': False,
        'password_expiry_days': 0,
        'allowed_ip_ranges': [],
    },
}

TENANT_SETTINGS_SECTIONS: List[str] = list(DEFAULT_TENANT_SETTINGS.keys())

# 缓存键格式
TENANT_SETTINGS_CACHE_KEY = 'tenant_settings'

# JWT Token 类型
TOKEN_TYPE_ACCESS = 'access'
TOKEN_TYPE_REFRESH = 'refresh'

# 审计动作类型
AUDIT_ACTIONS = {
    'USER_REGISTERED': 'user_registered',
    'USER_LOGIN': 'user_login',
    'USER_CREATED': 'user_created',
    'USER_UPDATED': 'user_updated',
    'USER_DELETED': 'user_deleted',
    'ACCESS_DENIED': 'access_denied',
    'UNSCOPED_QUERY': 'unscoped_query',
    'SCOPE_DETACHED': 'scope_detached',
    'COURSE_CREATED': 'course_created',
    'COURSE_UPDATED': 'course_updated',
    'COURSE_DELETED': 'course_deleted',
    'COURSE_PUBLISHED': 'course_published',
    'CATEGORY_CREATED': 'category_created',
    'CATEGORY_UPDATED': 'category_updated',
    'CATEGORY_DELETED': 'category_deleted',
    'ENROLLMENT_CREATED': 'enrollment_created',
    'ENROLLMENT_UPDATED': 'enrollment_updated',
    'ENROLLMENT_DELETED': 'enrollment_deleted',
    'SESSION_SCHEDULED': 'session_scheduled',
    'SESSION_UPDATED': 'session_updated',
    'SESSION_CANCELLED': 'session_cancelled',
    'SESSION_DELETED': 'session_deleted',
    'CONTENT_CREATED': 'content_created',
    'CONTENT_UPDATED': 'content_updated',
    'CONTENT_DELETED': 'content_deleted',
    'CONTENT_REORDERED': 'content_reordered',
    'ATTENDANCE_MARKED': 'attendance_marked',
    'ATTENDANCE_DELETED': 'attendance_deleted',
    'TENANT_SETTINGS_UPDATED': 'tenant_settings_updated',
}


# HTTP 状态码
class HttpStatus:
    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500


# 错误代码
class ErrorCode:
    # 认证错误
    INVALID_CREDENTIALS = 'invalid_credentials'
    TOKEN_EXPIRED = 'token_expired'
    TOKEN_INVALID = 'token_invalid'
    USER_INACTIVE = 'user_inactive'
    NOT_AUTHENTICATED = 'not_authenticated'

    # 权限错误
    PERMISSION_DENIED = 'permission_denied'
    TENANT_REQUIRED = 'tenant_required'
    TENANT_MISMATCH = 'tenant_mismatch'

    # 资源错误
    NOT_FOUND = 'not_found'
    TENANT_NOT_FOUND = 'tenant_not_found'

    # 验证错误
    VALIDATION_ERROR = 'validation_error'
    EMAIL_ALREADY_EXISTS = 'email_already_exists'
    CONFIGURATION_ERROR = 'configuration_error'
