"""
账单模型
"""

from django.db import models

from .base import TenantOwnedModel
from ..constants import INVOICE_STATUSES
from ..tenancy.scoping import tenant_owned


@tenant_owned()
class Invoice(TenantOwnedModel):
    """学生账单"""

    student = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices'
    )
    course = models.ForeignKey(
        'Course',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invoices'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2
    )
    currency = models.CharField(
        max_length=3,
        default='USD'
    )
    status = models.CharField(
        max_length=20,
        choices=[(v, k) for k, v in INVOICE_STATUSES.items()],
        default=INVOICE_STATUSES['PENDING']
    )
    due_date = models.DateField(
        null=True,
        blank=True
    )
    payment_method = models.CharField(
        max_length=50,
        blank=True,
        default=''
    )
    notes = models.TextField(
        blank=True,
        default=''
    )

    class Meta(TenantOwnedModel.Meta):
        db_table = 'lms_invoice'
        indexes = [
            models.Index(fields=['tenant', 'status'], name='lms_invoice_tenant_status_idx'),
            models.Index(fields=['tenant', 'student'], name='lms_invoice_tenant_student_idx'),
        ]

    def __str__(self):
        return f"{self.amount} {self.currency} ({self.status})"
