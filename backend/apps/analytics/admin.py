from django.contrib import admin
from .models import AnalyticsScript


@admin.register(AnalyticsScript)
class AnalyticsScriptAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'location', 'is_active', 'use_partytown']
    list_filter = ['type', 'is_active']
