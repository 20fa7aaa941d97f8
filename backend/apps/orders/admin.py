"""Order admin configuration."""

from django.contrib import admin
from .models import Order, OrderItem, OrderStatusHistory, Shipment


class OrderItemInline(admin.TabularInline):
    """Inline for order items."""
    model = OrderItem
    extra = 0
    raw_id_fields = ['product', 'variant']
    readonly_fields = ['product_name', 'variant_sku']


class OrderStatusHistoryInline(admin.TabularInline):
    """Inline for status history."""
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ['status', 'notes', 'created_at']


class ShipmentInline(admin.TabularInline):
    model = Shipment
    extra = 0
    readonly_fields = ['shipped_at']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'customer_name', 'customer_phone', 'status',
        'fulfillment_status', 'total_amount', 'created_at', 'deleted_at'
    ]
    list_filter = ['status', 'fulfillment_status', 'created_at']
    search_fields = ['id', 'customer_name', 'customer_phone']
    raw_id_fields = ['customer']
    readonly_fields = ['total_amount', 'created_at', 'updated_at', 'deleted_at']
    inlines = [OrderItemInline, OrderStatusHistoryInline, ShipmentInline]

    fieldsets = (
        ('Order Information', {
            'fields': ('customer', 'status', 'fulfillment_status')
        }),
        ('Contact', {
            'fields': ('customer_name', 'customer_phone', 'customer_email')
        }),
        ('Shipping Information', {
            'fields': ('shipping_address', 'city', 'zone', 'area', 'notes')
        }),
        ('Pricing', {
            'fields': ('shipping_charge', 'discount_code', 'discount_amount', 'total_amount')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
            'classes': ('collapse',)
        }),
    )
