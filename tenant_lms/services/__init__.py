"""
Tenant LMS 业务逻辑服务
"""

from .attendance_service import AttendanceService
from .auth_service import AuthService
from .category_service import CategoryService
from .content_service import ContentService
from .course_service import CourseService
from .enrollment_service import EnrollmentService
from .schedule_service import ClassScheduleService
from .settings_service import TenantSettingsService
from .user_service import UserService

__all__ = [
    'AttendanceService',
    'AuthService',
    'CategoryService',
    'ContentService',
    'CourseService',
    'EnrollmentService',
    'ClassScheduleService',
    'TenantSettingsService',
    'UserService'
]
