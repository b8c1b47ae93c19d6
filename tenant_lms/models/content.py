"""
课程内容模型 - module > chapter > lesson 三级结构
"""

from django.db import models

from .base import TenantOwnedModel
from ..constants import CONTENT_TYPES
from ..tenancy.scoping import tenant_owned


@tenant_owned()
class CourseContent(TenantOwnedModel):
    """
    课程内容节点

    同一父节点下按 position 排序；父节点必须属于同一课程
    """

    course = models.ForeignKey(
        'Course',
        on_delete=models.CASCADE,
        related_name='contents',
        help_text="课程"
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
        help_text="父节点"
    )
    content_type = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in CONTENT_TYPES.items()],
        help_text="类型: module | chapter | lesson"
    )
    title = models.CharField(
        max_length=255
    )
    description = models.TextField(
        blank=True,
        default=''
    )
    position = models.PositiveIntegerField(
        default=0,
        help_text="同级排序"
    )
    duration_mins = models.PositiveIntegerField(
        null=True,
        blank=True
    )
    content_url = models.URLField(
        max_length=500,
        blank=True,
        default=''
    )
    is_required = models.BooleanField(
        default=True
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_course_content'
        ordering = ['position', 'created_at']
        indexes = [
            models.Index(fields=['tenant', 'course', 'position'], name='lms_content_tenant_pos_idx'),
            models.Index(fields=['tenant', 'parent'], name='lms_content_tenant_parent_idx'),
        ]

    def __str__(self):
        return f"{self.content_type}: {self.title}"
