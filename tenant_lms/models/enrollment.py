"""
报名模型
"""

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from .base import TenantOwnedModel
from ..constants import ENROLLMENT_STATUSES
from ..tenancy.scoping import tenant_owned


@tenant_owned()
class Enrollment(TenantOwnedModel):
    """学生报名课程；课程、学生与报名记录属于同一租户"""

    course = models.ForeignKey(
        'Course',
        on_delete=models.CASCADE,
        related_name='enrollments',
        help_text="课程"
    )
    student = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='enrollments',
        help_text="学生"
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in ENROLLMENT_STATUSES.items()],
        default=ENROLLMENT_STATUSES['ACTIVE'],
        help_text="状态: active | completed | cancelled | suspended"
    )
    progress = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text="学习进度 0-100"
    )
    grade = models.CharField(
        max_length=10,
        null=True,
        blank=True
    )
    enrolled_at = models.DateTimeField(
        auto_now_add=True
    )
    completed_at = models.DateTimeField(
        null=True,
        blank=True
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_enrollment'
        ordering = ['-enrolled_at']
        unique_together = [('course', 'student')]
        indexes = [
            models.Index(fields=['tenant', 'course'], name='lms_enroll_tenant_course_idx'),
            models.Index(fields=['tenant', 'student'], name='lms_enroll_tenant_student_idx'),
            models.Index(fields=['tenant', 'status'], name='lms_enroll_tenant_status_idx'),
        ]

    def __str__(self):
        return f"{self.student_id} -> {self.course_id} ({self.status})"

    @property
    def is_completed(self):
        return self.status == ENROLLMENT_STATUSES['COMPLETED']
