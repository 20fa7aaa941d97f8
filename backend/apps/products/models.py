"""
Catalog models demonstrating best practices:
- Soft-deletable entities with prefixed string ids
- Slugs unique among non-deleted rows
- Child rows (variants, images) owned by their product
- Composite indexes for the admin list queries
"""

from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q, Sum

from apps.core.models import BaseModel, TimeStampedModel

MAX_PRICE = Decimal('1000000000000')


class Category(BaseModel):
    """Product category."""
    id_prefix = 'cat'
    unique_active_fields = ('slug',)

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    description = models.TextField(blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    meta_title = models.CharField(max_length=255, blank=True, null=True)
    meta_description = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'categories'
        verbose_name_plural = 'categories'
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['slug'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_category_slug',
            ),
        ]

    def __str__(self):
        return self.name

    def search_document(self):
        return {
            'title': self.name,
            'slug': self.slug,
            'content': self.description or '',
            'url': f'/categories/{self.slug}',
        }


class Collection(BaseModel):
    """
    Curated group of products: explicit members plus every active
    product of the member categories.
    """
    id_prefix = 'coll'
    unique_active_fields = ('slug',)

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    description = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    categories = models.ManyToManyField(Category, blank=True, related_name='collections')
    products = models.ManyToManyField('Product', blank=True, related_name='collections')

    class Meta:
        db_table = 'collections'
        constraints = [
            models.UniqueConstraint(
                fields=['slug'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_collection_slug',
            ),
        ]

    def __str__(self):
        return self.name

    def product_ids(self):
        """Ids of every product this collection covers."""
        ids = set(self.products.values_list('id', flat=True))
        category_products = Product.objects.active().filter(
            category__in=self.categories.all(),
            is_active=True,
        )
        ids.update(category_products.values_list('id', flat=True))
        return ids


class Product(BaseModel):
    """
    Product with variants and images.

    Best practices:
    - DecimalField for money
    - Stock lives on variants; the product only aggregates it
    - PROTECT the category so it cannot vanish under its products
    """

    class DiscountType(models.TextChoices):
        PERCENTAGE = 'percentage', 'Percentage'
        FLAT = 'flat', 'Flat amount'

    id_prefix = 'prod'
    unique_active_fields = ('slug',)

    name = models.CharField(max_length=100)
    slug = models.SlugField(max_length=100)
    description = models.TextField(blank=True, null=True)
    price = models.DecimalField(
        max_digits=15,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(MAX_PRICE)]
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name='products'
    )
    is_active = models.BooleanField(default=True, db_index=True)

    # Product level discount shown on the storefront
    discount_type = models.CharField(
        max_length=20,
        choices=DiscountType.choices,
        blank=True,
        null=True
    )
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, blank=True, null=True)
    discount_amount = models.DecimalField(max_digits=15, decimal_places=2, blank=True, null=True)
    free_delivery = models.BooleanField(default=False)

    # Structured content
    attributes = models.JSONField(default=list, blank=True)
    additional_info = models.JSONField(default=list, blank=True)

    # SEO
    meta_title = models.CharField(max_length=255, blank=True, null=True)
    meta_description = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'products'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['category', 'is_active']),
            models.Index(fields=['is_active', '-updated_at']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['slug'],
                condition=Q(deleted_at__isnull=True),
                name='unique_active_product_slug',
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def total_stock(self):
        return self.variants.aggregate(total=Sum('stock'))['total'] or 0

    @property
    def sale_price(self):
        """Price after the product level discount."""
        if self.discount_type == self.DiscountType.PERCENTAGE and self.discount_percentage:
            reduction = self.price * self.discount_percentage / Decimal('100')
            return (self.price - reduction).quantize(Decimal('0.01'))
        if self.discount_type == self.DiscountType.FLAT and self.discount_amount:
            return max(self.price - self.discount_amount, Decimal('0.00'))
        return self.price

    def search_document(self):
        if not self.is_active:
            return None
        skus = ' '.join(self.variants.values_list('sku', flat=True))
        return {
            'title': self.name,
            'slug': self.slug,
            'content': ' '.join(filter(None, [self.description, skus])),
            'url': f'/products/{self.slug}',
        }


class ProductVariant(TimeStampedModel):
    """Sellable variant; owns the stock counter."""
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='variants'
    )
    sku = models.CharField(max_length=100, unique=True)
    price = models.DecimalField(max_digits=15, decimal_places=2)
    stock = models.PositiveIntegerField(default=0)
    size = models.CharField(max_length=50, blank=True)
    color = models.CharField(max_length=50, blank=True)

    class Meta:
        db_table = 'product_variants'
        ordering = ['created_at', 'id']

    def __str__(self):
        return self.sku


class ProductImage(TimeStampedModel):
    """Product image; the first image in sort order is the primary one."""
    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name='images'
    )
    url = models.URLField(max_length=500)
    alt_text = models.CharField(max_length=255, blank=True)
    is_primary = models.BooleanField(default=False)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'product_images'
        ordering = ['sort_order', 'id']

    def __str__(self):
        return f"Image for {self.product.name}"


class StockMovement(TimeStampedModel):
    """
    Audit row for every change to a variant's stock counter.

    ``quantity`` is signed: positive adds stock, negative removes it.
    ``order_id`` is a plain column so the trail survives order deletion.
    """

    class Type(models.TextChoices):
        RESERVED = 'reserved', 'Reserved by order'
        RELEASED = 'released', 'Released by order'
        ADJUSTED = 'adjusted', 'Manual adjustment'

    class Reason(models.TextChoices):
        RECEIVED = 'received', 'Received'
        CORRECTION = 'correction', 'Correction'
        DAMAGE = 'damage', 'Damage'
        THEFT = 'theft', 'Theft'
        RETURN = 'return', 'Return'
        OTHER = 'other', 'Other'

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.CASCADE,
        related_name='movements'
    )
    order_id = models.CharField(max_length=32, blank=True, null=True, db_index=True)
    type = models.CharField(max_length=20, choices=Type.choices)
    reason = models.CharField(max_length=20, choices=Reason.choices, blank=True)
    quantity = models.IntegerField()
    previous_stock = models.PositiveIntegerField()
    new_stock = models.PositiveIntegerField()
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='stock_movements'
    )

    class Meta:
        db_table = 'stock_movements'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['variant', '-created_at']),
        ]

    def __str__(self):
        return f"{self.variant_id} {self.quantity:+d} ({self.type})"
