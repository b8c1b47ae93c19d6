"""
出勤服务
"""

import logging
from typing import Any, Dict, List, Optional

from django.db import transaction

from .base import TenantScopedService
from .schedule_service import _to_datetime
from ..constants import ACTION_DELETE, ACTION_UPDATE, ATTENDANCE_STATUSES, AUDIT_ACTIONS, ENROLLMENT_STATUSES
from ..exceptions import ValidationError
from ..models import Attendance, AuditLog, ClassSession, Enrollment, User
from ..tenancy import RequestContext, guarded_mutation


logger = logging.getLogger(__name__)


class AttendanceService(TenantScopedService):
    """出勤服务"""

    model = Attendance

    def list_attendance(
        self,
        principal,
        request_context: Optional[RequestContext],
        session_id,
        status: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        课堂出勤列表

        Returns:
            {'items': [...], 'summary': {status: count}}
        """
        session = self.get_parent(ClassSession, principal, request_context, session_id)

        queryset = self.repository.queryset(principal, request_context).filter(session=session).select_related('student')
        items = list(queryset)
        summary = {value: 0 for value in ATTENDANCE_STATUSES.values()}
        for record in items:
            summary[record.status] = summary.get(record.status, 0) + 1
        if status:
            items = [record for record in items if record.status == status]
        return {'items': items, 'summary': summary}

    def _enrolled_student_ids(self, session: ClassSession) -> set:
        return {
            str(student_id)
            for student_id in Enrollment.objects.filter(course_id=session.course_id)
            .exclude(status=ENROLLMENT_STATUSES['CANCELLED'])
            .values_list('student_id', flat=True)
        }

    def _clean_record(self, record: Dict[str, Any], default_status: Optional[str]) -> Dict[str, Any]:
        if not isinstance(record, dict) or not record.get('student_id'):
            raise ValidationError("Each attendance record requires student_id")
        status = record.get('status') or default_status or ATTENDANCE_STATUSES['PRESENT']
        if status not in ATTENDANCE_STATUSES.values():
            raise ValidationError(f"Invalid attendance status: {status}")

        joined_at = _to_datetime(record.get('joined_at'), 'joined_at')
        left_at = _to_datetime(record.get('left_at'), 'left_at')
        if joined_at and left_at and left_at <= joined_at:
            raise ValidationError("left_at must be after joined_at")

        return {
            'status': status,
            'joined_at': joined_at,
            'left_at': left_at,
            'notes': record.get('notes') or '',
        }

    @guarded_mutation(ACTION_UPDATE, model=ClassSession)
    def update_attendance(
        self,
        principal,
        request_context,
        session: ClassSession,
        records: List[Dict[str, Any]],
        mark_all_as: Optional[str] = None
    ) -> List[Attendance]:
        """
        记录课堂出勤（按学生覆盖写入）

        Args:
            records: [{'student_id', 'status', 'joined_at', 'left_at', 'notes'}]
            mark_all_as: 未指定 status 的记录使用的默认状态

        Raises:
            ValidationError: 课堂已取消，学生不属于本租户或未报名
        """
        if session.is_cancelled:
            raise ValidationError("Cannot mark attendance for a cancelled session")
        if not records:
            raise ValidationError("records cannot be empty")
        if mark_all_as and mark_all_as not in ATTENDANCE_STATUSES.values():
            raise ValidationError(f"Invalid attendance status: {mark_all_as}")

        enrolled = self._enrolled_student_ids(session)
        cleaned = []
        for record in records:
            values = self._clean_record(record, mark_all_as)
            student = self.get_related(User, principal, request_context, record['student_id'], 'Student')
            if student.tenant_id != session.tenant_id:
                raise ValidationError("Student belongs to another tenant")
            if str(student.id) not in enrolled:
                raise ValidationError(f"Student {student.id} is not enrolled in this course")
            cleaned.append((student, values))

        marked = []
        with transaction.atomic():
            for student, values in cleaned:
                attendance = Attendance.objects.filter(session=session, student=student).first()
                if attendance is None:
                    attendance = self.repository.create(
                        principal,
                        request_context,
                        tenant_id=session.tenant_id,
                        session=session,
                        student=student,
                        **values
                    )
                else:
                    for field, value in values.items():
                        setattr(attendance, field, value)
                    attendance.save()
                marked.append(attendance)

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['ATTENDANCE_MARKED'],
            resource_type='class_session',
            resource_id=session.id,
            metadata={'count': len(marked)},
            tenant_id=session.tenant_id
        )
        self.log(principal).info(f"Attendance marked for session {session.id}: {len(marked)} records")
        return marked

    @guarded_mutation(ACTION_DELETE)
    def delete_attendance(self, principal, request_context, attendance: Attendance) -> bool:
        """删除出勤记录"""
        attendance_id = attendance.id
        tenant_id = attendance.tenant_id
        attendance.delete()

        AuditLog.log_action(
            user=principal,
            action=AUDIT_ACTIONS['ATTENDANCE_DELETED'],
            resource_type='attendance',
            resource_id=attendance_id,
            tenant_id=tenant_id
        )
        return True
