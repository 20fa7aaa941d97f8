"""
Discount serializers.

Best practices demonstrated:
- Association rows replaced wholesale on update
- Cross-field validation for value type and date window
"""

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from rest_framework import serializers

from apps.core.serializers import ensure_unique_active
from apps.customers.models import Customer
from apps.orders.models import Order
from apps.products.models import Collection, Product
from .models import Discount, DiscountCollection, DiscountProduct, DiscountUsage


class EpochOrISODateTimeField(serializers.DateTimeField):
    """
    Accepts ISO-8601 strings or epoch numbers. Numbers below 1e10 are
    seconds, larger ones milliseconds.
    """

    def to_internal_value(self, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            seconds = value if value < 1e10 else value / 1000
            return datetime.fromtimestamp(seconds, tz=dt_timezone.utc)
        return super().to_internal_value(value)


class DiscountSerializer(serializers.ModelSerializer):
    """Discount create/update payload."""
    code = serializers.CharField(min_length=3, max_length=50)
    discount_value = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))
    min_purchase_amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0'),
        required=False, allow_null=True
    )
    start_date = EpochOrISODateTimeField()
    end_date = EpochOrISODateTimeField(required=False, allow_null=True)
    applies_to_products = serializers.ListField(
        child=serializers.CharField(max_length=32), required=False, write_only=True
    )
    applies_to_collections = serializers.ListField(
        child=serializers.CharField(max_length=32), required=False, write_only=True
    )

    class Meta:
        model = Discount
        fields = [
            'code', 'type', 'value_type', 'discount_value',
            'min_purchase_amount', 'min_quantity',
            'max_uses_per_order', 'max_uses', 'limit_one_per_customer',
            'combine_with_product_discounts', 'combine_with_order_discounts',
            'combine_with_shipping_discounts', 'customer_segment',
            'start_date', 'end_date', 'is_active',
            'applies_to_products', 'applies_to_collections',
        ]

    def validate_code(self, value):
        return ensure_unique_active(Discount, 'code', value, self.instance, message='Discount code already exists')

    def validate_applies_to_products(self, value):
        found = set(Product.objects.active().filter(pk__in=value).values_list('pk', flat=True))
        missing = [pk for pk in value if pk not in found]
        if missing:
            raise serializers.ValidationError(f"Unknown products: {', '.join(missing)}")
        return list(dict.fromkeys(value))

    def validate_applies_to_collections(self, value):
        found = set(Collection.objects.active().filter(pk__in=value).values_list('pk', flat=True))
        missing = [pk for pk in value if pk not in found]
        if missing:
            raise serializers.ValidationError(f"Unknown collections: {', '.join(missing)}")
        return list(dict.fromkeys(value))

    def validate(self, attrs):
        value_type = attrs.get('value_type')
        if value_type == Discount.ValueType.PERCENTAGE and attrs['discount_value'] > 100:
            raise serializers.ValidationError({
                'discount_value': 'Percentage discounts cannot exceed 100'
            })
        if value_type == Discount.ValueType.FREE and attrs.get('type') != Discount.Type.FREE_SHIPPING:
            raise serializers.ValidationError({
                'value_type': 'Only free shipping discounts can use the free value type'
            })
        end_date = attrs.get('end_date')
        if end_date and end_date <= attrs['start_date']:
            raise serializers.ValidationError({
                'end_date': 'End date must be after the start date'
            })
        return attrs

    def create(self, validated_data):
        products = validated_data.pop('applies_to_products', [])
        collections = validated_data.pop('applies_to_collections', [])
        discount = Discount.objects.create(**validated_data)
        self._replace_associations(discount, products, collections)
        return discount

    def update(self, instance, validated_data):
        products = validated_data.pop('applies_to_products', [])
        collections = validated_data.pop('applies_to_collections', [])
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        self._replace_associations(instance, products, collections)
        return instance

    def _replace_associations(self, discount, products, collections):
        """Delete every association row and insert the new set."""
        discount.product_links.all().delete()
        discount.collection_links.all().delete()

        if discount.type != Discount.Type.AMOUNT_OFF_PRODUCTS:
            return

        DiscountProduct.objects.bulk_create([
            DiscountProduct(discount=discount, product_id=pk, application_type=DiscountProduct.ApplicationType.GET)
            for pk in products
        ])
        DiscountCollection.objects.bulk_create([
            DiscountCollection(discount=discount, collection_id=pk, application_type=DiscountProduct.ApplicationType.GET)
            for pk in collections
        ])


class DiscountListSerializer(serializers.ModelSerializer):
    """
    Discount row with its associations and usage projections.

    Expects ``usage_count``/``total_discount_amount`` annotations and
    prefetched links.
    """
    related_products = serializers.SerializerMethodField()
    related_collections = serializers.SerializerMethodField()
    usage_count = serializers.IntegerField(read_only=True, default=0)
    total_discount_amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, read_only=True, default=Decimal('0.00')
    )

    class Meta:
        model = Discount
        fields = [
            'id', 'code', 'type', 'value_type', 'discount_value',
            'min_purchase_amount', 'min_quantity',
            'max_uses_per_order', 'max_uses', 'limit_one_per_customer',
            'combine_with_product_discounts', 'combine_with_order_discounts',
            'combine_with_shipping_discounts', 'customer_segment',
            'start_date', 'end_date', 'is_active',
            'related_products', 'related_collections',
            'usage_count', 'total_discount_amount',
            'created_at', 'updated_at', 'deleted_at',
        ]

    def get_related_products(self, obj):
        related = {'buy': [], 'get': []}
        for link in obj.product_links.all():
            related[link.application_type].append({'id': link.product_id, 'name': link.product.name})
        return related

    def get_related_collections(self, obj):
        return [
            {'id': link.collection_id, 'name': link.collection.name, 'application_type': link.application_type}
            for link in obj.collection_links.all()
        ]


class CartItemSerializer(serializers.Serializer):
    id = serializers.CharField(max_length=32)
    price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0'))
    quantity = serializers.IntegerField(min_value=1)


class DiscountValidationSerializer(serializers.Serializer):
    """Query string of the public validation endpoint."""
    code = serializers.CharField(max_length=50)
    total = serializers.DecimalField(max_digits=15, decimal_places=2, required=False, min_value=Decimal('0'))
    shipping_cost = serializers.DecimalField(
        max_digits=15, decimal_places=2, required=False, default=Decimal('0'), min_value=Decimal('0')
    )
    customer_phone = serializers.CharField(max_length=14, required=False)
    items = serializers.JSONField(required=False, binary=True)

    def validate_items(self, value):
        serializer = CartItemSerializer(data=value, many=True)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


class DiscountUsageSerializer(serializers.ModelSerializer):
    discount_id = serializers.PrimaryKeyRelatedField(source='discount', queryset=Discount.objects.all())
    order_id = serializers.PrimaryKeyRelatedField(source='order', queryset=Order.objects.all())
    customer_id = serializers.PrimaryKeyRelatedField(
        source='customer', queryset=Customer.objects.all(), required=False, allow_null=True
    )
    amount_discounted = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))

    class Meta:
        model = DiscountUsage
        fields = ['id', 'discount_id', 'order_id', 'customer_id', 'amount_discounted', 'created_at']
        read_only_fields = ['id', 'created_at']
