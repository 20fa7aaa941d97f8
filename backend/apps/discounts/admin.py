"""Discount admin configuration."""

from django.contrib import admin
from .models import Discount, DiscountCollection, DiscountProduct, DiscountUsage


class DiscountProductInline(admin.TabularInline):
    model = DiscountProduct
    extra = 0
    raw_id_fields = ['product']


class DiscountCollectionInline(admin.TabularInline):
    model = DiscountCollection
    extra = 0
    raw_id_fields = ['collection']


@admin.register(Discount)
class DiscountAdmin(admin.ModelAdmin):
    list_display = ['code', 'type', 'value_type', 'discount_value', 'start_date', 'end_date', 'is_active', 'deleted_at']
    list_filter = ['type', 'is_active']
    search_fields = ['code']
    inlines = [DiscountProductInline, DiscountCollectionInline]


@admin.register(DiscountUsage)
class DiscountUsageAdmin(admin.ModelAdmin):
    list_display = ['discount', 'order', 'customer', 'amount_discounted', 'created_at']
    raw_id_fields = ['discount', 'order', 'customer']
