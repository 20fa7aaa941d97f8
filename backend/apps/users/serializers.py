"""Admin user serializers."""

from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    """Current admin account."""
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'email', 'username', 'first_name', 'last_name',
            'full_name', 'phone', 'is_staff', 'is_superuser', 'date_joined',
        ]
        read_only_fields = fields
