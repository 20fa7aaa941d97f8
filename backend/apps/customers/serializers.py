"""Customer serializers."""

from rest_framework import serializers

from apps.core.serializers import ensure_unique_active
from .models import Customer, CustomerHistory
from .services import record_history


class CustomerSerializer(serializers.ModelSerializer):
    """
    Customer row and create/update payload.

    The order projections are read-only; they are recomputed from
    orders, never written by clients.
    """
    name = serializers.CharField(min_length=3, max_length=100)
    phone = serializers.CharField(min_length=11, max_length=14)
    email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    address = serializers.CharField(max_length=500, required=False, allow_null=True, allow_blank=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'name', 'email', 'phone', 'address', 'city', 'zone', 'area',
            'total_orders', 'total_spent', 'last_order_at',
            'created_at', 'updated_at', 'deleted_at',
        ]
        read_only_fields = [
            'id', 'total_orders', 'total_spent', 'last_order_at',
            'created_at', 'updated_at', 'deleted_at',
        ]

    def validate_phone(self, value):
        return ensure_unique_active(
            Customer, 'phone', value, self.instance,
            message='Phone number is already used by another customer'
        )

    def create(self, validated_data):
        customer = super().create(validated_data)
        record_history(customer, CustomerHistory.ChangeType.CREATED)
        return customer

    def update(self, instance, validated_data):
        customer = super().update(instance, validated_data)
        record_history(customer, CustomerHistory.ChangeType.UPDATED)
        return customer


class CustomerHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = CustomerHistory
        fields = [
            'id', 'change_type', 'name', 'email', 'phone',
            'address', 'city', 'zone', 'area', 'created_at',
        ]
