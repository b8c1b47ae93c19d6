"""
排课服务
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .base import TenantScopedService
from ..constants import ACTION_DELETE, ACTION_UPDATE, AUDIT_ACTIONS, SESSION_STATUSES
from ..exceptions import ValidationError
from ..models import AuditLog, ClassSession, Course, User
from ..tenancy import RequestContext, guarded_mutation


logger = logging.getLogger(__name__)


def _to_datetime(value, field: str) -> Optional[datetime]:
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parse_datetime(str(value))
        if parsed is None:
            raise ValidationError(f"Invalid datetime for {field}: {value}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


class ClassScheduleService(TenantScopedService):
    """排课服务"""

    model = ClassSession
    editable_fields = ['title', 'meeting_url', 'is_recorded', 'recording_url']

    def list_sessions(
        self,
        principal,
        request_context: Optional[RequestContext] = None,
        course_id=None,
        tutor_id=None,
        status: Optional[str] = None,
        start=None,
        end=None,
        page: Any = 1,
        per_page: Any = None
    ) -> Dict[str, Any]:
        """课堂列表，可按时间窗口 [start, end) 过滤"""
        queryset = self.repository.queryset(principal, request_context).select_related('course', 'tutor')
        if course_id:
            queryset = queryset.filter(course_id=course_id)
        if tutor_id:
            queryset = queryset.filter(tutor_id=tutor_id)
        if status:
            queryset = queryset.filter(status=status)

        start = _to_datetime(start, 'start')
        end = _to_datetime(end, 'end')
        if start and end and end <= start:
            raise ValidationError("end must be after start")
        if start:
            queryset = queryset.filter(scheduled_at__gte=start)
        if end:
            queryset = queryset.filter(scheduled_at__lt=end)

        return self.paginate(queryset, page, per_page)

    def get_session(self, principal, request_context, session_id) -> ClassSession:
        return self.get_scoped(principal, request_context, session_id)

    @staticmethod
    def _clean_duration(value) -> int:
        try:
            duration = int(value)
        except (TypeError, ValueError):
            raise ValidationError("duration_mins must be an integer")
        if duration <= 0:
            raise ValidationError("duration_mins must be positive")
        return duration

    def schedule_session(self, principal, request_context, data: Dict[str, Any]) -> ClassSession:
        """
        排课

        Args:
            data: course_id, scheduled_at（必填）, tutor_id, title, duration_mins, meeting_url, is_recorded
        """
        course = self.get_related(Course, principal, request_context, data.get('course_id'), 'Course')
        if course is None:
            raise ValidationError("course_id is required")

        scheduled_at = _to_datetime(data.get('scheduled_at'), 'scheduled_at')
        if scheduled_at is None:
            raise ValidationError("scheduled_at is required")

        values = {field: data[field] for field in self.editable_fields if field in data}
        values['duration_mins'] = self._clean_duration(data.get('duration_mins', 60))

        tutor = self.get_related(User, principal, request_context, data.get('tutor_id'), 'Tutor')
        if tutor is not None and tutor.tenant_id != course.tenant_id:
            raise ValidationError("Tutor belongs to another tenant")

        session = self.repository.create(
            principal,
            request_context,
            tenant_id=course.tenant_id,
            course=course,
            tutor=tutor,
            scheduled_at=scheduled_at,
            status=SESSION_STATUSES['SCHEDULED'],
            **values
        )

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['SESSION_SCHEDULED'],
            resource_type='class_session',
            resource_id=session.id,
            metadata={'course_id': str(course.id), 'scheduled_at': scheduled_at.isoformat()},
            tenant_id=session.tenant_id
        )
        self.log(principal).info(f"Session scheduled: {session.id} for course {course.id}")
        return session

    @guarded_mutation(ACTION_UPDATE)
    def update_session(self, principal, request_context, session: ClassSession, data: Dict[str, Any]) -> ClassSession:
        """更新课堂"""
        if session.is_cancelled:
            raise ValidationError("Cannot update a cancelled session")

        for field in self.editable_fields:
            if field in data:
                setattr(session, field, data[field])
        if 'scheduled_at' in data:
            scheduled_at = _to_datetime(data['scheduled_at'], 'scheduled_at')
            if scheduled_at is None:
                raise ValidationError("scheduled_at cannot be empty")
            session.scheduled_at = scheduled_at
        if 'duration_mins' in data:
            session.duration_mins = self._clean_duration(data['duration_mins'])
        if 'status' in data:
            if data['status'] not in SESSION_STATUSES.values():
                raise ValidationError(f"Invalid session status: {data['status']}")
            session.status = data['status']
        if 'tutor_id' in data:
            tutor = self.get_related(User, principal, request_context, data['tutor_id'], 'Tutor')
            if tutor is not None and tutor.tenant_id != session.tenant_id:
                raise ValidationError("Tutor belongs to another tenant")
            session.tutor = tutor

        session.save()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['SESSION_UPDATED'],
            resource_type='class_session',
            resource_id=session.id,
            metadata={'fields': sorted(data.keys())},
            tenant_id=session.tenant_id
        )
        return session

    @guarded_mutation(ACTION_UPDATE)
    def cancel_session(self, principal, request_context, session: ClassSession, reason: str = '') -> ClassSession:
        """取消课堂"""
        if session.is_cancelled:
            return session

        session.status = SESSION_STATUSES['CANCELLED']
        session.save(update_fields=['status', 'updated_at'])

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['SESSION_CANCELLED'],
            resource_type='class_session',
            resource_id=session.id,
            metadata={'reason': reason},
            tenant_id=session.tenant_id
        )
        self.log(principal).info(f"Session cancelled: {session.id}")
        return session

    @guarded_mutation(ACTION_DELETE)
    def delete_session(self, principal, request_context, session: ClassSession) -> bool:
        """删除课堂"""
        session_id = session.id
        tenant_id = session.tenant_id
        session.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['SESSION_DELETED'],
            resource_type='class_session',
            resource_id=session_id,
            tenant_id=tenant_id
        )
        return True
