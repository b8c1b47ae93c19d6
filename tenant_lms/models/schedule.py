"""
排课模型
"""

from datetime import timedelta

from django.db import models

from .base import TenantOwnedModel
from ..constants import ATTENDANCE_STATUSES, SESSION_STATUSES
from ..tenancy.scoping import tenant_owned


@tenant_owned()
class ClassSession(TenantOwnedModel):
    """课堂（一次排课）"""

    course = models.ForeignKey(
        'Course',
        on_delete=models.CASCADE,
        related_name='sessions',
        help_text="课程"
    )
    tutor = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='tutored_sessions',
        help_text="授课老师"
    )
    title = models.CharField(
        max_length=255,
        blank=True,
        default=''
    )
    scheduled_at = models.DateTimeField(
        help_text="开课时间"
    )
    duration_mins = models.PositiveIntegerField(
        default=60
    )
    meeting_url = models.URLField(
        max_length=500,
        blank=True,
        default=''
    )
    is_recorded = models.BooleanField(
        default=False
    )
    recording_url = models.URLField(
        max_length=500,
        blank=True,
        default=''
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in SESSION_STATUSES.items()],
        default=SESSION_STATUSES['SCHEDULED'],
        help_text="状态: scheduled | completed | cancelled"
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_class_session'
        ordering = ['scheduled_at']
        indexes = [
            models.Index(fields=['tenant', 'scheduled_at'], name='lms_session_tenant_sched_idx'),
            models.Index(fields=['tenant', 'course'], name='lms_session_tenant_course_idx'),
        ]

    def __str__(self):
        return f"{self.title or self.course_id} @ {self.scheduled_at}"

    @property
    def ends_at(self):
        return self.scheduled_at + timedelta(minutes=self.duration_mins)

    @property
    def is_cancelled(self):
        return self.status == SESSION_STATUSES['CANCELLED']


@tenant_owned()
class Attendance(TenantOwnedModel):
    """课堂出勤记录，每个学生每节课一条"""

    session = models.ForeignKey(
        ClassSession,
        on_delete=models.CASCADE,
        related_name='attendances',
        help_text="课堂"
    )
    student = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='attendances',
        help_text="学生"
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in ATTENDANCE_STATUSES.items()],
        default=ATTENDANCE_STATUSES['PRESENT'],
        help_text="状态: present | absent | late | excused | partial"
    )
    joined_at = models.DateTimeField(
        null=True,
        blank=True
    )
    left_at = models.DateTimeField(
        null=True,
        blank=True
    )
    notes = models.CharField(
        max_length=500,
        blank=True,
        default=''
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_attendance'
        unique_together = [('session', 'student')]
        indexes = [
            models.Index(fields=['tenant', 'session'], name='lms_attend_tenant_session_idx'),
            models.Index(fields=['tenant', 'student'], name='lms_attend_tenant_student_idx'),
        ]

    def __str__(self):
        return f"{self.student_id} @ {self.session_id}: {self.status}"
