"""
Tenant LMS 数据模型
"""

from .base import BaseModel, TenantOwnedModel
from .tenant import Tenant
from .user import User
from .course import Category, Course
from .content import CourseContent
from .enrollment import Enrollment
from .schedule import Attendance, ClassSession
from .invoice import Invoice
from .audit import AuditLog

__all__ = [
    'BaseModel',
    'TenantOwnedModel',
    'Tenant',
    'User',
    'Category',
    'Course',
    'CourseContent',
    'Enrollment',
    'ClassSession',
    'Attendance',
    'Invoice',
    'AuditLog'
]
