from rest_framework import serializers

from .models import AnalyticsScript


class AnalyticsScriptSerializer(serializers.ModelSerializer):
    """``config`` holds the snippet settings and may not be empty."""
    name = serializers.CharField(min_length=3, max_length=100)
    config = serializers.DictField(allow_empty=False)

    class Meta:
        model = AnalyticsScript
        fields = [
            'id', 'name', 'type', 'is_active', 'use_partytown',
            'config', 'location', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
