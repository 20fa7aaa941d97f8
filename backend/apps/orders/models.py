"""
Order models demonstrating best practices:
- State machines
- Audit trails
- Financial calculations
- Snapshots of catalog data on line items
"""

from decimal import Decimal

from django.db import models

from apps.core.models import BaseModel, TimeStampedModel


class Order(BaseModel):
    """
    Order with status tracking.

    Best practices:
    - Use choices for status fields
    - Track all status changes
    - Use DecimalField for monetary values
    - Keep the customer's contact details on the order itself
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSING = 'processing', 'Processing'
        CONFIRMED = 'confirmed', 'Confirmed'
        SHIPPED = 'shipped', 'Shipped'
        DELIVERED = 'delivered', 'Delivered'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'
        RETURNED = 'returned', 'Returned'

    class FulfillmentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PARTIAL = 'partial', 'Partial'
        COMPLETE = 'complete', 'Complete'

    # An order in one of these no longer needs the customer record
    TERMINAL_STATUSES = (Status.DELIVERED, Status.CANCELLED, Status.RETURNED)

    # Excluded from revenue
    VOID_STATUSES = (Status.CANCELLED, Status.RETURNED)

    id_prefix = 'ord'

    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='orders'
    )

    # Contact snapshot
    customer_name = models.CharField(max_length=100)
    customer_phone = models.CharField(max_length=14, db_index=True)
    customer_email = models.EmailField(blank=True, null=True)
    shipping_address = models.CharField(max_length=500)
    city = models.CharField(max_length=100, blank=True, null=True)
    zone = models.CharField(max_length=100, blank=True, null=True)
    area = models.CharField(max_length=100, blank=True, null=True)
    notes = models.CharField(max_length=500, blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    fulfillment_status = models.CharField(
        max_length=20,
        choices=FulfillmentStatus.choices,
        default=FulfillmentStatus.PENDING
    )

    # Pricing
    shipping_charge = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, default=0)
    discount_code = models.CharField(max_length=50, blank=True, null=True)
    total_amount = models.DecimalField(max_digits=15, decimal_places=2, default=0)

    class Meta:
        db_table = 'orders'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at']),
            models.Index(fields=['customer', 'status']),
        ]

    def __str__(self):
        return f"Order {self.pk}"

    @staticmethod
    def compute_total(lines, shipping_charge, discount_amount):
        """Σ price × quantity + shipping − discount."""
        subtotal = sum((Decimal(line['price']) * line['quantity'] for line in lines), Decimal('0'))
        return subtotal + Decimal(shipping_charge) - Decimal(discount_amount)

    def contact_details(self):
        """Customer fields derived from this order."""
        return {
            'name': self.customer_name,
            'phone': self.customer_phone,
            'email': self.customer_email,
            'address': self.shipping_address,
            'city': self.city,
            'zone': self.zone,
            'area': self.area,
        }


class OrderItem(TimeStampedModel):
    """
    Order line item.

    Best practice: Snapshot product data to preserve
    historical information even if the product changes.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(
        'products.Product',
        on_delete=models.PROTECT,
        related_name='order_items'
    )
    variant = models.ForeignKey(
        'products.ProductVariant',
        on_delete=models.PROTECT,
        blank=True,
        null=True,
        related_name='order_items'
    )

    product_name = models.CharField(max_length=255)
    variant_sku = models.CharField(max_length=100, blank=True, null=True)
    quantity = models.PositiveIntegerField(default=1)
    price = models.DecimalField(max_digits=15, decimal_places=2)

    class Meta:
        db_table = 'order_items'
        ordering = ['id']

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"

    @property
    def total(self):
        return self.price * self.quantity


class OrderStatusHistory(TimeStampedModel):
    """
    Track all status changes for audit trail.

    Best practice: Maintain a complete audit trail of
    important state changes.
    """
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=20, choices=Order.Status.choices)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'order_status_history'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.order_id} - {self.status}"


class Shipment(TimeStampedModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='shipments')
    carrier = models.CharField(max_length=100)
    tracking_number = models.CharField(max_length=100)
    shipped_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_shipments'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.carrier} {self.tracking_number}"
