"""
课程服务
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.db.models import Avg, Count, Q
from django.utils import timezone
from django.utils.text import slugify

from .base import TenantScopedService
from ..constants import (
    ACTION_DELETE,
    ACTION_UPDATE,
    AUDIT_ACTIONS,
    COURSE_LEVELS,
    COURSE_STATUSES,
    ENROLLMENT_STATUSES,
)
from ..exceptions import PermissionDenied, TenantMismatchError, ValidationError
from ..models import AuditLog, Category, Course, User
from ..tenancy import RequestContext, guarded_mutation, normalize_tenant_id


logger = logging.getLogger(__name__)


class CourseService(TenantScopedService):
    """课程服务"""

    model = Course
    editable_fields = [
        'title', 'description', 'short_description', 'level',
        'price', 'currency', 'duration_hours',
    ]

    def list_courses(
        self,
        principal,
        request_context: Optional[RequestContext] = None,
        category_id=None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        instructor_id=None,
        page: Any = 1,
        per_page: Any = None
    ) -> Dict[str, Any]:
        """
        课程列表

        过滤条件与租户条件叠加（AND），不会扩大结果集
        """
        queryset = self.repository.queryset(principal, request_context).select_related('category', 'instructor')

        if category_id:
            queryset = queryset.filter(category_id=category_id)
        if status:
            if status not in COURSE_STATUSES.values():
                raise ValidationError(f"Invalid course status: {status}")
            queryset = queryset.filter(status=status)
        if instructor_id:
            queryset = queryset.filter(instructor_id=instructor_id)
        if search:
            queryset = queryset.filter(
                Q(title__icontains=search) | Q(description__icontains=search)
            )

        return self.paginate(queryset, page, per_page)

    def get_course(self, principal, request_context, course_id) -> Course:
        return self.get_scoped(principal, request_context, course_id)

    def _unique_slug(self, tenant_id: str, base: str, exclude_pk=None) -> str:
        """租户内唯一的slug: intro, intro-2, intro-3 ..."""
        base = slugify(base) or 'course'
        slug = base
        counter = 2
        existing = Course.objects.filter(tenant_id=tenant_id)
        if exclude_pk is not None:
            existing = existing.exclude(pk=exclude_pk)
        while existing.filter(slug=slug).exists():
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def _clean_values(self, principal, request_context, data: Dict[str, Any]) -> Dict[str, Any]:
        values = {field: data[field] for field in self.editable_fields if field in data}

        if 'title' in values:
            values['title'] = (values['title'] or '').strip()
            if not values['title']:
                raise ValidationError("Course title is required")

        if values.get('level') and values['level'] not in COURSE_LEVELS:
            raise ValidationError(f"Invalid course level: {values['level']}")

        if 'price' in values:
            try:
                values['price'] = Decimal(str(values['price'] if values['price'] is not None else 0))
            except InvalidOperation:
                raise ValidationError("Invalid price")
            if values['price'] < 0:
                raise ValidationError("Price cannot be negative")

        if 'category_id' in data:
            values['category'] = self.get_related(
                Category, principal, request_context, data['category_id'], 'Category'
            )
        if 'instructor_id' in data:
            values['instructor'] = self.get_related(
                User, principal, request_context, data['instructor_id'], 'Instructor'
            )
        return values

    @staticmethod
    def _check_same_tenant(tenant_id, values: Dict[str, Any]):
        for relation in ('category', 'instructor'):
            related = values.get(relation)
            if related is not None and related.tenant_id != tenant_id:
                raise ValidationError(f"{relation.capitalize()} belongs to another tenant")

    def create_course(self, principal, request_context, data: Dict[str, Any]) -> Course:
        """
        创建课程

        租户取作用域租户；super_admin 需显式指定 tenant_id 或通过分类推断
        """
        if not (data.get('title') or '').strip():
            raise ValidationError("Course title is required")

        values = self._clean_values(principal, request_context, data)

        scope = self.repository.scope(principal, request_context)
        if scope.deny_all:
            raise PermissionDenied("Tenant could not be resolved for this operation")
        tenant_id = normalize_tenant_id(data.get('tenant_id')) or scope.tenant_id
        if tenant_id is None and values.get('category') is not None:
            tenant_id = values['category'].tenant_id
        if tenant_id is None:
            raise ValidationError("tenant_id is required to create Course")
        if scope.tenant_id is not None and tenant_id != scope.tenant_id:
            raise TenantMismatchError(f"Cannot create Course in tenant {tenant_id} from tenant {scope.tenant_id}")

        self._check_same_tenant(tenant_id, values)
        values['slug'] = self._unique_slug(tenant_id, data.get('slug') or values['title'])
        values['status'] = COURSE_STATUSES['DRAFT']

        course = self.repository.create(principal, request_context, tenant_id=tenant_id, **values)

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['COURSE_CREATED'],
            resource_type='course',
            resource_id=course.id,
            metadata={'title': course.title, 'slug': course.slug},
            tenant_id=course.tenant_id
        )
        self.log(principal).info(f"Course created: {course.id} ({course.slug})")
        return course

    @guarded_mutation(ACTION_UPDATE)
    def update_course(self, principal, request_context, course: Course, data: Dict[str, Any]) -> Course:
        """更新课程"""
        values = self._clean_values(principal, request_context, data)
        self._check_same_tenant(course.tenant_id, values)

        if 'status' in data:
            if data['status'] not in COURSE_STATUSES.values():
                raise ValidationError(f"Invalid course status: {data['status']}")
            values['status'] = data['status']
            if data['status'] == COURSE_STATUSES['PUBLISHED'] and course.published_at is None:
                values['published_at'] = timezone.now()

        if data.get('slug'):
            values['slug'] = self._unique_slug(course.tenant_id, data['slug'], exclude_pk=course.pk)

        for field, value in values.items():
            setattr(course, field, value)
        course.save()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['COURSE_UPDATED'],
            resource_type='course',
            resource_id=course.id,
            metadata={'fields': sorted(data.keys())},
            tenant_id=course.tenant_id
        )
        return course

    @guarded_mutation(ACTION_UPDATE)
    def publish_course(self, principal, request_context, course: Course) -> Course:
        """发布课程"""
        if course.is_published:
            return course

        course.status = COURSE_STATUSES['PUBLISHED']
        course.published_at = timezone.now()
        course.save(update_fields=['status', 'published_at', 'updated_at'])

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['COURSE_PUBLISHED'],
            resource_type='course',
            resource_id=course.id,
            tenant_id=course.tenant_id
        )
        self.log(principal).info(f"Course published: {course.id}")
        return course

    @guarded_mutation(ACTION_DELETE)
    def delete_course(self, principal, request_context, course: Course) -> bool:
        """删除课程，报名与课堂级联删除"""
        course_id = course.id
        tenant_id = course.tenant_id
        course.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['COURSE_DELETED'],
            resource_type='course',
            resource_id=course_id,
            tenant_id=tenant_id
        )
        self.log(principal).info(f"Course deleted: {course_id}")
        return True

    def get_course_stats(self, principal, request_context, course_id) -> Dict[str, Any]:
        """课程统计：报名人数、完成人数、平均进度、课堂数"""
        course = self.get_scoped(principal, request_context, course_id)

        enrollments = course.enrollments.filter(tenant_id=course.tenant_id)
        totals = enrollments.aggregate(
            total=Count('id'),
            completed=Count('id', filter=Q(status=ENROLLMENT_STATUSES['COMPLETED'])),
            active=Count('id', filter=Q(status=ENROLLMENT_STATUSES['ACTIVE'])),
            average_progress=Avg('progress'),
        )

        return {
            'course_id': str(course.id),
            'total_enrollments': totals['total'] or 0,
            'active_enrollments': totals['active'] or 0,
            'completed_enrollments': totals['completed'] or 0,
            'average_progress': round(float(totals['average_progress'] or 0), 2),
            'total_sessions': course.sessions.filter(tenant_id=course.tenant_id).count(),
        }
