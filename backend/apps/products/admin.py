"""Catalog admin configuration."""

from django.contrib import admin
from .models import Category, Collection, Product, ProductImage, ProductVariant, StockMovement


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 1


class ProductImageInline(admin.TabularInline):
    model = ProductImage
    extra = 1


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'created_at', 'deleted_at']
    search_fields = ['name', 'description']
    prepopulated_fields = {'slug': ('name',)}


@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active', 'deleted_at']
    search_fields = ['name']
    filter_horizontal = ['categories', 'products']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Product admin with variants and images inline."""
    list_display = ['name', 'category', 'price', 'is_active', 'created_at', 'deleted_at']
    list_filter = ['is_active', 'free_delivery', 'category', 'created_at']
    search_fields = ['name', 'variants__sku', 'description']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [ProductVariantInline, ProductImageInline]
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug', 'category', 'description')
        }),
        ('Pricing', {
            'fields': ('price', 'discount_type', 'discount_percentage', 'discount_amount', 'free_delivery')
        }),
        ('Content', {
            'fields': ('attributes', 'additional_info'),
            'classes': ('collapse',)
        }),
        ('Status', {
            'fields': ('is_active',)
        }),
        ('SEO', {
            'fields': ('meta_title', 'meta_description'),
            'classes': ('collapse',)
        }),
        ('Lifecycle', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    """Read-only audit trail of stock changes."""
    list_display = ['variant', 'type', 'reason', 'quantity', 'previous_stock', 'new_stock', 'order_id', 'created_at']
    list_filter = ['type', 'reason']
    search_fields = ['variant__sku', 'order_id']
    readonly_fields = [field.name for field in StockMovement._meta.fields]

    def has_add_permission(self, request):
        return False
