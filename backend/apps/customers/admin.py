"""Customer admin configuration."""

from django.contrib import admin
from .models import Customer, CustomerHistory


class CustomerHistoryInline(admin.TabularInline):
    model = CustomerHistory
    extra = 0
    can_delete = False
    readonly_fields = ['change_type', 'name', 'email', 'phone', 'address', 'created_at']
    fields = readonly_fields


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'total_orders', 'total_spent', 'last_order_at', 'deleted_at']
    search_fields = ['name', 'phone', 'email']
    readonly_fields = ['total_orders', 'total_spent', 'last_order_at', 'created_at', 'updated_at']
    inlines = [CustomerHistoryInline]
