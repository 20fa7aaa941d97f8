"""
Discount models demonstrating best practices:
- Choices for discount kinds
- Association tables instead of embedded id lists
- Usage rows as the source of truth for usage counters
"""

from django.db import models
from django.db.models import Q

from apps.core.models import BaseModel, TimeStampedModel


class Discount(BaseModel):
    """
    Discount code.

    Usage count and total discounted amount are never stored; they are
    aggregated from ``DiscountUsage`` rows.
    """

    class Type(models.TextChoices):
        AMOUNT_OFF_PRODUCTS = 'amount_off_products', 'Amount off products'
        AMOUNT_OFF_ORDER = 'amount_off_order', 'Amount off order'
        FREE_SHIPPING = 'free_shipping', 'Free shipping'

    class ValueType(models.TextChoices):
        PERCENTAGE = 'percentage', 'Percentage'
        FIXED_AMOUNT = 'fixed_amount', 'Fixed amount'
        FREE = 'free', 'Free'

    id_prefix = 'disc'
    unique_active_fields = ('code',)

    code = models.CharField(max_length=50, db_index=True)
    type = models.CharField(max_length=30, choices=Type.choices, db_index=True)
    value_type = models.CharField(max_length=20, choices=ValueType.choices)
    discount_value = models.DecimalField(max_digits=15, decimal_places=2)

    # Requirements
    min_purchase_amount = models.DecimalField(max_digits=15, decimal_places=2, blank=True, null=True)
    min_quantity = models.PositiveIntegerField(blank=True, null=True)

    # Limits
    max_uses_per_order = models.PositiveIntegerField(blank=True, null=True)
    max_uses = models.PositiveIntegerField(blank=True, null=True)
    limit_one_per_customer = models.BooleanField(default=False)

    # Combinations
    combine_with_product_discounts = models.BooleanField(default=False)
    combine_with_order_discounts = models.BooleanField(default=False)
    combine_with_shipping_discounts = models.BooleanField(default=False)

    customer_segment = models.CharField(max_length=100, blank=True, null=True)

    start_date = models.DateTimeField()
    end_date = models.DateTimeField(blank=True, null=True)
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = 'discounts'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['code'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_discount_code',
            ),
        ]

    def __str__(self):
        return self.code


class DiscountProduct(TimeStampedModel):
    """Product a discount applies to (``get``) or requires (``buy``)."""

    class ApplicationType(models.TextChoices):
        BUY = 'buy', 'Buy'
        GET = 'get', 'Get'

    discount = models.ForeignKey(Discount, on_delete=models.CASCADE, related_name='product_links')
    product = models.ForeignKey('products.Product', on_delete=models.PROTECT, related_name='discount_links')
    application_type = models.CharField(
        max_length=10,
        choices=ApplicationType.choices,
        default=ApplicationType.GET
    )

    class Meta:
        db_table = 'discount_products'


class DiscountCollection(TimeStampedModel):
    discount = models.ForeignKey(Discount, on_delete=models.CASCADE, related_name='collection_links')
    collection = models.ForeignKey(
        'products.Collection',
        on_delete=models.PROTECT,
        related_name='discount_links'
    )
    application_type = models.CharField(
        max_length=10,
        choices=DiscountProduct.ApplicationType.choices,
        default=DiscountProduct.ApplicationType.GET
    )

    class Meta:
        db_table = 'discount_collections'


class DiscountUsage(TimeStampedModel):
    """One redemption of a discount on an order."""
    discount = models.ForeignKey(Discount, on_delete=models.PROTECT, related_name='usages')
    order = models.ForeignKey('orders.Order', on_delete=models.CASCADE, related_name='discount_usages')
    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='discount_usages'
    )
    amount_discounted = models.DecimalField(max_digits=15, decimal_places=2)

    class Meta:
        db_table = 'discount_usage'
        indexes = [
            models.Index(fields=['discount', 'created_at']),
        ]

    def __str__(self):
        return f"{self.discount_id} on {self.order_id}"
