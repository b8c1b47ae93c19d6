"""
课程内容相关模型
"""

from django.db import models

from .base import TenantOwnedModel
from ..constants import COURSE_LEVELS, COURSE_STATUSES
from ..tenancy.scoping import tenant_owned


@tenant_owned()
class Category(TenantOwnedModel):
    """课程分类"""

    name = models.CharField(
        max_length=255,
        help_text="分类名称"
    )
    slug = models.SlugField(
        max_length=255,
        help_text="分类slug，租户内唯一"
    )
    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='children',
        help_text="父分类"
    )
    description = models.TextField(
        blank=True,
        default=''
    )
    is_active = models.BooleanField(
        default=True
    )
    sort_order = models.IntegerField(
        default=0
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_category'
        ordering = ['sort_order', 'name']
        unique_together = [('tenant', 'slug')]
        indexes = [
            models.Index(fields=['tenant', 'slug'], name='lms_category_tenant_slug_idx'),
            models.Index(fields=['tenant', 'is_active'], name='lms_category_tenant_act_idx'),
        ]

    def __str__(self):
        return self.name


@tenant_owned()
class Course(TenantOwnedModel):
    """课程"""

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='courses',
        help_text="所属分类"
    )
    instructor = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='taught_courses',
        help_text="主讲老师"
    )
    title = models.CharField(
        max_length=255
    )
    slug = models.SlugField(
        max_length=255
    )
    description = models.TextField(
        blank=True,
        default=''
    )
    short_description = models.CharField(
        max_length=500,
        blank=True,
        default=''
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in COURSE_STATUSES.items()],
        default=COURSE_STATUSES['DRAFT'],
        help_text="状态: draft | published | archived"
    )
    level = models.CharField(
        max_length=20,
        choices=[(level, level) for level in COURSE_LEVELS],
        blank=True,
        default=''
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0
    )
    currency = models.CharField(
        max_length=3,
        default='USD'
    )
    duration_hours = models.FloatField(
        null=True,
        blank=True
    )
    published_at = models.DateTimeField(
        null=True,
        blank=True
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_course'
        unique_together = [('tenant', 'slug')]
        indexes = [
            models.Index(fields=['tenant', 'slug'], name='lms_course_tenant_slug_idx'),
            models.Index(fields=['tenant', 'status'], name='lms_course_tenant_status_idx'),
            models.Index(fields=['tenant', 'category'], name='lms_course_tenant_cat_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_published(self):
        return self.status == COURSE_STATUSES['PUBLISHED']
