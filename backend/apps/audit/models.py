"""
Audit models - persisted order event trail.
"""
import uuid
from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """
    Immutable record of one published order event.
    """
    # Event categories
    ORDER = 'ORDER'
    BID = 'BID'
    ESCROW = 'ESCROW'
    SETTLEMENT = 'SETTLEMENT'
    REVIEW = 'REVIEW'

    CATEGORY_CHOICES = [
        (ORDER, 'Order'),
        (BID, 'Bid'),
        (ESCROW, 'Escrow'),
        (SETTLEMENT, 'Settlement'),
        (REVIEW, 'Review'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Event details
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, db_index=True)
    action = models.CharField(max_length=100, db_index=True)
    description = models.TextField()

    # Who and what
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    order_id = models.UUIDField(null=True, blank=True, db_index=True)

    # Additional data
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Additional context data"
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['category', '-created_at'], name='audit_category_idx'),
            models.Index(fields=['user', '-created_at'], name='audit_user_idx'),
        ]

    def __str__(self):
        return f"{self.category} - {self.action} at {self.created_at}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Audit log entries are immutable")
        super().save(*args, **kwargs)
