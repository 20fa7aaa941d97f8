"""
Catalog serializers demonstrating best practices:
- Lightweight list serializers, detailed read serializers
- Separate write serializers with nested children
- Uniqueness among non-deleted rows reported as 409
"""

import uuid
from decimal import Decimal

from rest_framework import serializers

from apps.core.exceptions import ConflictError
from apps.core.serializers import SlugField, ensure_unique_active
from .models import MAX_PRICE, Category, Collection, Product, ProductImage, ProductVariant, StockMovement
from .services import record_movement


class CategorySerializer(serializers.ModelSerializer):
    """Category create/update payload."""
    name = serializers.CharField(min_length=3, max_length=100)
    slug = SlugField()

    class Meta:
        model = Category
        fields = ['name', 'slug', 'description', 'image_url', 'meta_title', 'meta_description']

    def validate_slug(self, value):
        return ensure_unique_active(Category, 'slug', value, self.instance)


class CategoryListSerializer(serializers.ModelSerializer):
    """Category row with the number of live products."""
    product_count = serializers.IntegerField(read_only=True, default=0)

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'slug', 'description', 'image_url',
            'meta_title', 'meta_description', 'product_count',
            'created_at', 'updated_at', 'deleted_at',
        ]


class CollectionSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=3, max_length=100)
    slug = SlugField()
    categories = serializers.PrimaryKeyRelatedField(
        many=True, required=False, queryset=Category.objects.active()
    )
    products = serializers.PrimaryKeyRelatedField(
        many=True, required=False, queryset=Product.objects.active()
    )

    class Meta:
        model = Collection
        fields = [
            'id', 'name', 'slug', 'description', 'is_active',
            'categories', 'products',
            'created_at', 'updated_at', 'deleted_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at', 'deleted_at']

    def validate_slug(self, value):
        return ensure_unique_active(Collection, 'slug', value, self.instance)


class ProductVariantSerializer(serializers.ModelSerializer):
    """Variant row; ``id`` is optional on write and matches existing variants."""
    id = serializers.IntegerField(required=False)
    stock = serializers.IntegerField(min_value=0)
    price = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0'))

    class Meta:
        model = ProductVariant
        fields = ['id', 'sku', 'price', 'stock', 'size', 'color']
        extra_kwargs = {
            # uniqueness is checked across the whole payload in ProductWriteSerializer
            'sku': {'validators': []},
        }


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ['id', 'url', 'alt_text', 'is_primary', 'sort_order']
        read_only_fields = ['id', 'is_primary', 'sort_order']


class AttributeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    value = serializers.CharField(max_length=255)


class AdditionalInfoSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    content = serializers.CharField(allow_blank=True)


class ProductListSerializer(serializers.ModelSerializer):
    """
    Lightweight serializer for product lists.

    Expects ``variants`` and ``images`` to be prefetched.
    """
    category_name = serializers.CharField(source='category.name', read_only=True)
    primary_image = serializers.SerializerMethodField()
    variant_count = serializers.SerializerMethodField()
    total_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'price', 'category', 'category_name',
            'is_active', 'discount_type', 'discount_percentage',
            'discount_amount', 'free_delivery', 'primary_image',
            'variant_count', 'total_stock',
            'created_at', 'updated_at', 'deleted_at',
        ]

    def get_primary_image(self, obj):
        images = list(obj.images.all())
        for image in images:
            if image.is_primary:
                return image.url
        return images[0].url if images else None

    def get_variant_count(self, obj):
        return len(obj.variants.all())

    def get_total_stock(self, obj):
        return sum(variant.stock for variant in obj.variants.all())


class ProductDetailSerializer(serializers.ModelSerializer):
    """Everything the product form needs."""
    category_name = serializers.CharField(source='category.name', read_only=True)
    variants = ProductVariantSerializer(many=True, read_only=True)
    images = ProductImageSerializer(many=True, read_only=True)
    sale_price = serializers.DecimalField(max_digits=15, decimal_places=2, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'price', 'sale_price',
            'category', 'category_name', 'is_active',
            'discount_type', 'discount_percentage', 'discount_amount',
            'free_delivery', 'attributes', 'additional_info',
            'meta_title', 'meta_description', 'variants', 'images',
            'created_at', 'updated_at', 'deleted_at',
        ]


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Create/update payload with nested variants and images.

    Best practice: children are written in the same transaction as the
    product (the viewset wraps save() in transaction.atomic).
    """
    name = serializers.CharField(min_length=3, max_length=100)
    slug = SlugField()
    description = serializers.CharField(min_length=10, required=False, allow_null=True)
    price = serializers.DecimalField(
        max_digits=15, decimal_places=2,
        min_value=Decimal('0'), max_value=MAX_PRICE
    )
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.active())
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal('0'), max_value=Decimal('100')
    )
    discount_amount = serializers.DecimalField(
        max_digits=15, decimal_places=2, required=False, allow_null=True,
        min_value=Decimal('0')
    )
    attributes = AttributeSerializer(many=True, required=False)
    additional_info = AdditionalInfoSerializer(many=True, required=False)
    variants = ProductVariantSerializer(many=True, required=False)
    images = ProductImageSerializer(many=True, required=False)

    class Meta:
        model = Product
        fields = [
            'name', 'slug', 'description', 'price', 'category', 'is_active',
            'discount_type', 'discount_percentage', 'discount_amount',
            'free_delivery', 'attributes', 'additional_info',
            'meta_title', 'meta_description', 'variants', 'images',
        ]

    def validate_slug(self, value):
        return ensure_unique_active(Product, 'slug', value, self.instance)

    def validate_variants(self, variants):
        skus = [variant['sku'] for variant in variants]
        duplicates = sorted({sku for sku in skus if skus.count(sku) > 1})
        if duplicates:
            raise serializers.ValidationError(f"Duplicate SKU in request: {', '.join(duplicates)}")

        taken = ProductVariant.objects.filter(sku__in=skus)
        if self.instance is not None:
            taken = taken.exclude(product=self.instance)
        taken = sorted(taken.values_list('sku', flat=True))
        if taken:
            raise ConflictError(f"SKU already exists: {', '.join(taken)}")
        return variants

    def validate(self, attrs):
        """Cross-field validation."""
        discount_type = attrs.get('discount_type')
        if discount_type == Product.DiscountType.PERCENTAGE and attrs.get('discount_percentage') is None:
            raise serializers.ValidationError({
                'discount_percentage': 'Discount percentage is required for percentage discounts'
            })
        if discount_type == Product.DiscountType.FLAT and attrs.get('discount_amount') is None:
            raise serializers.ValidationError({
                'discount_amount': 'Discount amount is required for flat discounts'
            })
        return attrs

    def create(self, validated_data):
        variants = validated_data.pop('variants', [])
        images = validated_data.pop('images', [])

        product = Product.objects.create(**validated_data)
        for variant in variants:
            variant.pop('id', None)
            self._create_variant(product, variant)
        self._replace_images(product, images)
        return product

    def update(self, instance, validated_data):
        variants = validated_data.pop('variants', None)
        images = validated_data.pop('images', None)

        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()

        if variants is not None:
            self._sync_variants(instance, variants)
        if images is not None:
            self._replace_images(instance, images)
        return instance

    def _replace_images(self, product, images):
        product.images.all().delete()
        for position, image in enumerate(images):
            ProductImage.objects.create(
                product=product,
                url=image['url'],
                alt_text=image.get('alt_text', ''),
                is_primary=position == 0,
                sort_order=position,
            )

    def _sync_variants(self, product, variants):
        """
        Match variants by id: update the ones sent back, create new ones,
        delete the rest. Variants already sold cannot be removed.
        """
        from apps.orders.models import OrderItem

        existing = {variant.id: variant for variant in product.variants.all()}
        kept_ids = {variant.get('id') for variant in variants if variant.get('id') in existing}
        removed_ids = [pk for pk in existing if pk not in kept_ids]

        sold = sorted(
            OrderItem.objects.filter(variant_id__in=removed_ids)
            .values_list('variant__sku', flat=True)
            .distinct()
        )
        if sold:
            raise ConflictError(
                f"Cannot remove variants used by existing orders: {', '.join(sold)}"
            )
        ProductVariant.objects.filter(pk__in=removed_ids).delete()

        # SKUs may move between kept variants; park the changing ones first
        for data in variants:
            variant = existing.get(data.get('id'))
            if variant is not None and variant.sku != data['sku']:
                ProductVariant.objects.filter(pk=variant.pk).update(sku=f'~{uuid.uuid4().hex}')

        for data in variants:
            variant_id = data.pop('id', None)
            if variant_id not in existing:
                self._create_variant(product, data)
                continue

            variant = existing[variant_id]
            previous_stock = variant.stock
            for attr, value in data.items():
                setattr(variant, attr, value)
            variant.save()
            if variant.stock != previous_stock:
                record_movement(
                    variant, StockMovement.Type.ADJUSTED, previous_stock,
                    variant.stock - previous_stock,
                    reason=StockMovement.Reason.CORRECTION,
                    notes='Product edit',
                    created_by=self._acting_user(),
                )

    def _create_variant(self, product, data):
        variant = ProductVariant.objects.create(product=product, **data)
        if variant.stock:
            record_movement(
                variant, StockMovement.Type.ADJUSTED, 0, variant.stock,
                reason=StockMovement.Reason.RECEIVED,
                notes='Initial stock',
                created_by=self._acting_user(),
            )
        return variant

    def _acting_user(self):
        request = self.context.get('request')
        user = getattr(request, 'user', None)
        return user if user is not None and user.is_authenticated else None


class StockAdjustmentSerializer(serializers.Serializer):
    """Signed manual change: positive receives stock, negative writes it off."""
    delta = serializers.IntegerField()
    reason = serializers.ChoiceField(choices=StockMovement.Reason.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='', max_length=500)

    def validate_delta(self, value):
        if value == 0:
            raise serializers.ValidationError('Delta must not be zero')
        return value


class StockMovementSerializer(serializers.ModelSerializer):
    created_by = serializers.StringRelatedField()

    class Meta:
        model = StockMovement
        fields = [
            'id', 'type', 'reason', 'quantity', 'previous_stock', 'new_stock',
            'order_id', 'notes', 'created_by', 'created_at',
        ]


class LowStockVariantSerializer(serializers.ModelSerializer):
    product_id = serializers.CharField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = ProductVariant
        fields = ['id', 'sku', 'stock', 'size', 'color', 'product_id', 'product_name']


class LowStockQuerySerializer(serializers.Serializer):
    threshold = serializers.IntegerField(min_value=0, max_value=10000, required=False)
