"""
报名服务
"""

import logging
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from .base import TenantScopedService
from ..constants import ACTION_DELETE, ACTION_UPDATE, AUDIT_ACTIONS, ENROLLMENT_STATUSES, ROLE_STUDENT
from ..exceptions import TenantMismatchError, ValidationError
from ..models import AuditLog, Course, Enrollment, User
from ..tenancy import RequestContext, guarded_mutation


logger = logging.getLogger(__name__)


class EnrollmentService(TenantScopedService):
    """报名服务"""

    model = Enrollment

    def list_enrollments(
        self,
        principal,
        request_context: Optional[RequestContext] = None,
        course_id=None,
        student_id=None,
        status: Optional[str] = None,
        page: Any = 1,
        per_page: Any = None
    ) -> Dict[str, Any]:
        """报名列表"""
        queryset = self.repository.queryset(principal, request_context).select_related('course', 'student')
        if course_id:
            queryset = queryset.filter(course_id=course_id)
        if student_id:
            queryset = queryset.filter(student_id=student_id)
        if status:
            queryset = queryset.filter(status=status)
        return self.paginate(queryset, page, per_page)

    def get_enrollment(self, principal, request_context, enrollment_id) -> Enrollment:
        return self.get_scoped(principal, request_context, enrollment_id)

    def enroll_student(self, principal, request_context, course_id, student_id) -> Enrollment:
        """
        学生报名课程

        Raises:
            ValidationError: 课程/学生不存在，学生角色不符或重复报名
            TenantMismatchError: 课程与学生不属于同一租户
        """
        course = self.get_related(Course, principal, request_context, course_id, 'Course')
        student = self.get_related(User, principal, request_context, student_id, 'Student')
        if course is None or student is None:
            raise ValidationError("course_id and student_id are required")

        if student.role != ROLE_STUDENT:
            raise ValidationError(f"User {student.email} is not a student")
        if course.tenant_id != student.tenant_id:
            raise TenantMismatchError("Course and student belong to different tenants")

        if Enrollment.objects.filter(course=course, student=student).exists():
            raise ValidationError("Student is already enrolled in this course")

        try:
            with transaction.atomic():
                enrollment = self.repository.create(
                    principal,
                    request_context,
                    tenant_id=course.tenant_id,
                    course=course,
                    student=student,
                    status=ENROLLMENT_STATUSES['ACTIVE'],
                )
        except IntegrityError:
            raise ValidationError("Student is already enrolled in this course")

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['ENROLLMENT_CREATED'],
            resource_type='enrollment',
            resource_id=enrollment.id,
            metadata={'course_id': str(course.id), 'student_id': str(student.id)},
            tenant_id=enrollment.tenant_id
        )
        self.log(principal).info(f"Student {student.id} enrolled in course {course.id}")
        return enrollment

    @guarded_mutation(ACTION_UPDATE)
    def update_enrollment(self, principal, request_context, enrollment: Enrollment, data: Dict[str, Any]) -> Enrollment:
        """
        更新报名状态/进度

        进度达到100或状态改为 completed 时写入完成时间
        """
        if 'status' in data:
            if data['status'] not in ENROLLMENT_STATUSES.values():
                raise ValidationError(f"Invalid enrollment status: {data['status']}")
            enrollment.status = data['status']

        if 'progress' in data:
            try:
                progress = int(data['progress'])
            except (TypeError, ValueError):
                raise ValidationError("Progress must be an integer")
            if not 0 <= progress <= 100:
                raise ValidationError("Progress must be between 0 and 100")
            enrollment.progress = progress
            if progress == 100 and 'status' not in data:
                enrollment.status = ENROLLMENT_STATUSES['COMPLETED']

        if 'grade' in data:
            enrollment.grade = data['grade']

        if enrollment.is_completed:
            enrollment.completed_at = enrollment.completed_at or timezone.now()
        else:
            enrollment.completed_at = None

        enrollment.save()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['ENROLLMENT_UPDATED'],
            resource_type='enrollment',
            resource_id=enrollment.id,
            metadata={'status': enrollment.status, 'progress': enrollment.progress},
            tenant_id=enrollment.tenant_id
        )
        return enrollment

    @guarded_mutation(ACTION_DELETE)
    def delete_enrollment(self, principal, request_context, enrollment: Enrollment) -> bool:
        """删除报名"""
        enrollment_id = enrollment.id
        tenant_id = enrollment.tenant_id
        enrollment.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['ENROLLMENT_DELETED'],
            resource_type='enrollment',
            resource_id=enrollment_id,
            tenant_id=tenant_id
        )
        return True
