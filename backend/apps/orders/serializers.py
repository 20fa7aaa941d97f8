"""Order serializers."""

from decimal import Decimal

from rest_framework import serializers

from apps.products.models import Product, ProductVariant
from . import services
from .models import Order, OrderItem, OrderStatusHistory, Shipment


class OrderItemSerializer(serializers.ModelSerializer):
    total = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'product_id', 'variant_id',
            'product_name', 'variant_sku',
            'quantity', 'price', 'total'
        ]


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ['id', 'status', 'notes', 'created_at']


class ShipmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Shipment
        fields = ['id', 'carrier', 'tracking_number', 'shipped_at']


ORDER_FIELDS = [
    'id', 'customer_id', 'customer_name', 'customer_phone', 'customer_email',
    'shipping_address', 'city', 'zone', 'area', 'notes',
    'status', 'fulfillment_status',
    'shipping_charge', 'discount_amount', 'discount_code', 'total_amount',
    'created_at', 'updated_at', 'deleted_at',
]


class OrderListSerializer(serializers.ModelSerializer):
    """List row; expects an ``item_count`` annotation."""
    item_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Order
        fields = ORDER_FIELDS + ['item_count']


class OrderDetailSerializer(serializers.ModelSerializer):
    """Order with items, status history and shipments."""
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)
    shipments = ShipmentSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = ORDER_FIELDS + ['items', 'status_history', 'shipments']


class OrderItemWriteSerializer(serializers.Serializer):
    product_id = serializers.PrimaryKeyRelatedField(source='product', queryset=Product.objects.active())
    variant_id = serializers.PrimaryKeyRelatedField(
        source='variant',
        queryset=ProductVariant.objects.all(),
        required=False,
        allow_null=True
    )
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0'))

    def validate(self, attrs):
        variant = attrs.get('variant')
        if variant is not None and variant.product_id != attrs['product'].pk:
            raise serializers.ValidationError({
                'variant_id': 'Variant does not belong to this product'
            })
        return attrs


class OrderWriteSerializer(serializers.Serializer):
    """
    Order create/update payload.

    Best practice: Use a separate serializer for writes with nested
    item validation, and keep the business rules in services.
    """
    customer_name = serializers.CharField(min_length=3, max_length=100)
    customer_phone = serializers.CharField(min_length=11, max_length=14)
    customer_email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    shipping_address = serializers.CharField(min_length=10, max_length=500)
    city = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    zone = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    area = serializers.CharField(max_length=100, required=False, allow_null=True, allow_blank=True)
    notes = serializers.CharField(max_length=500, required=False, allow_null=True, allow_blank=True)
    shipping_charge = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0'), default=Decimal('0')
    )
    discount_amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0'), default=Decimal('0')
    )
    discount_code = serializers.CharField(max_length=50, required=False, allow_null=True, allow_blank=True)
    items = OrderItemWriteSerializer(many=True, allow_empty=False)

    def validate_customer_email(self, value):
        return value or None

    def create(self, validated_data):
        return services.create_order(validated_data)

    def update(self, instance, validated_data):
        return services.update_order(instance, validated_data)


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ShipOrderSerializer(serializers.Serializer):
    carrier = serializers.CharField(max_length=100)
    tracking_number = serializers.CharField(max_length=100)
