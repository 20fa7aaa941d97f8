"""
Customer models.

Best practices demonstrated:
- Stored aggregates kept as projections of the order table
- Append-only history snapshots for audit
"""

from django.db import models
from django.db.models import Q

from apps.core.models import BaseModel, TimeStampedModel


class Customer(BaseModel):
    """
    Customer identified by phone number.

    ``total_orders``, ``total_spent`` and ``last_order_at`` are written
    only by ``apps.customers.services.recalculate_customer_stats``.
    """
    id_prefix = 'cust'
    unique_active_fields = ('phone',)

    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=14, db_index=True)
    address = models.CharField(max_length=500, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    zone = models.CharField(max_length=100, blank=True, null=True)
    area = models.CharField(max_length=100, blank=True, null=True)

    # Projections
    total_orders = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    last_order_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['phone'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_customer_phone',
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"


class CustomerHistory(TimeStampedModel):
    """
    Snapshot of a customer's contact details at each change.

    Best practice: Maintain a complete audit trail of
    important state changes.
    """

    class ChangeType(models.TextChoices):
        CREATED = 'created', 'Created'
        UPDATED = 'updated', 'Updated'
        DELETED = 'deleted', 'Deleted'

    customer = models.ForeignKey(
        Customer,
        on_delete=models.CASCADE,
        related_name='history'
    )
    change_type = models.CharField(max_length=20, choices=ChangeType.choices)
    name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=14)
    address = models.CharField(max_length=500, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    zone = models.CharField(max_length=100, blank=True, null=True)
    area = models.CharField(max_length=100, blank=True, null=True)

    class Meta:
        db_table = 'customer_history'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'customer history'

    def __str__(self):
        return f"{self.customer_id} {self.change_type}"
