"""
Category, subcategory and product serializers
"""
from rest_framework import serializers

from apps.catalog.models import Category, CategorySubcategoryMap, Product, ProductVariant, Subcategory


class SubcategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Subcategory
        fields = [
            'id', 'name', 'slug', 'description', 'image_url', 'published',
            'seo_title', 'seo_description', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


class MappedSubcategorySerializer(serializers.ModelSerializer):
    """A subcategory as seen through one category's mapping."""
    id = serializers.UUIDField(source='subcategory.id')
    name = serializers.CharField(source='subcategory.name')
    slug = serializers.CharField(source='subcategory.slug')
    published = serializers.BooleanField(source='subcategory.published')
    image_url = serializers.CharField(source='subcategory.image_url')

    class Meta:
        model = CategorySubcategoryMap
        fields = ['id', 'name', 'slug', 'published', 'image_url', 'sort_order', 'is_primary']


class CategorySerializer(serializers.ModelSerializer):
    subcategories = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = [
            'id', 'name', 'slug', 'description', 'image_url', 'published',
            'seo_title', 'seo_description', 'subcategories', 'created_at', 'updated_at',
        ]

    def get_subcategories(self, obj):
        maps = obj.subcategory_maps.select_related('subcategory').order_by('sort_order', 'subcategory__name')
        return MappedSubcategorySerializer(maps, many=True).data


class NestedSubcategoryInputSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    name = serializers.CharField(max_length=100, required=False)
    slug = serializers.SlugField(max_length=120, required=False, allow_blank=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    image_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
    published = serializers.BooleanField(required=False)
    sort_order = serializers.IntegerField(required=False)

    def validate(self, attrs):
        if not attrs.get('id') and not attrs.get('name'):
            raise serializers.ValidationError("Each subcategory needs an id or a name")
        return attrs


class CategoryWriteSerializer(serializers.ModelSerializer):
    subcategories = NestedSubcategoryInputSerializer(many=True, required=False)
    slug = serializers.SlugField(max_length=120, required=False, allow_blank=True)

    class Meta:
        model = Category
        fields = [
            'name', 'slug', 'description', 'image_url', 'published',
            'seo_title', 'seo_description', 'subcategories',
        ]

    def validate_slug(self, value):
        if not value:
            return value
        qs = Category.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Category with this slug already exists")
        return value


class SubcategoryWriteSerializer(serializers.ModelSerializer):
    category_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    slug = serializers.SlugField(max_length=120, required=False, allow_blank=True)

    class Meta:
        model = Subcategory
        fields = [
            'name', 'slug', 'description', 'image_url', 'published',
            'seo_title', 'seo_description', 'category_ids',
        ]


class MappingCreateSerializer(serializers.Serializer):
    subcategory_id = serializers.UUIDField()
    sort_order = serializers.IntegerField(required=False, default=0)
    is_primary = serializers.BooleanField(required=False, default=False)


class ProductVariantSerializer(serializers.ModelSerializer):
    id = serializers.UUIDField(required=False)

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'name', 'sku', 'slug', 'cost_price', 'selling_price', 'stock',
            'min_stock', 'status', 'images', 'attributes', 'published',
        ]
        extra_kwargs = {'sku': {'validators': []}, 'slug': {'required': False}}

    def validate_attributes(self, value):
        if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
            raise serializers.ValidationError("Attributes must map names to strings")
        return value


class CategoryRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'slug']


class SubcategoryRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Subcategory
        fields = ['id', 'name', 'slug']


class ProductSerializer(serializers.ModelSerializer):
    categories = CategoryRefSerializer(many=True, read_only=True)
    subcategories = SubcategoryRefSerializer(many=True, read_only=True)
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'sku', 'description', 'product_type', 'product_structure',
            'image_urls', 'categories', 'subcategories', 'cost_price', 'selling_price',
            'base_stock', 'min_stock', 'status', 'published', 'average_rating',
            'total_ratings', 'total_reviews', 'weight', 'color', 'warranty',
            'is_cod_available', 'is_free_shipping', 'show_ratings', 'is_new_arrival',
            'tags', 'seo', 'variants', 'created_at', 'updated_at',
        ]


class ProductWriteSerializer(serializers.ModelSerializer):
    """
    Product create/update with nested variants. Variants carrying an ``id``
    are updated; others are created; existing variants left out of an
    update are removed.
    """
    category_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    subcategory_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    variants = ProductVariantSerializer(many=True, required=False)
    slug = serializers.SlugField(max_length=280, required=False, allow_blank=True)

    class Meta:
        model = Product
        fields = [
            'name', 'slug', 'sku', 'description', 'product_type', 'product_structure',
            'image_urls', 'category_ids', 'subcategory_ids', 'cost_price', 'selling_price',
            'base_stock', 'min_stock', 'status', 'published', 'weight', 'color', 'warranty',
            'is_cod_available', 'is_free_shipping', 'show_ratings', 'is_new_arrival',
            'tags', 'seo', 'variants',
        ]

    def validate_slug(self, value):
        if not value:
            return value
        qs = Product.objects.filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("Product with this slug already exists")
        return value

    def validate_sku(self, value):
        return value or None

    def validate(self, attrs):
        structure = attrs.get('product_structure', getattr(self.instance, 'product_structure', 'simple'))
        if structure == 'variant' and self.instance is None and not attrs.get('variants'):
            raise serializers.ValidationError({"variants": "Variant products need at least one variant"})
        return attrs

    def _set_relations(self, product, category_ids, subcategory_ids):
        if category_ids is not None:
            product.categories.set(Category.objects.filter(pk__in=category_ids))
        if subcategory_ids is not None:
            product.subcategories.set(Subcategory.objects.filter(pk__in=subcategory_ids))

    def _set_variants(self, product, variants):
        if variants is None:
            return
        keep = []
        for data in variants:
            variant_id = data.pop('id', None)
            variant = product.variants.filter(pk=variant_id).first() if variant_id else None
            if variant is None:
                variant = ProductVariant(product=product)
            for attr, value in data.items():
                setattr(variant, attr, value)
            variant.save()
            keep.append(variant.pk)
        product.variants.exclude(pk__in=keep).delete()

    def create(self, validated_data):
        category_ids = validated_data.pop('category_ids', None)
        subcategory_ids = validated_data.pop('subcategory_ids', None)
        variants = validated_data.pop('variants', None)
        product = Product.objects.create(**validated_data)
        self._set_relations(product, category_ids, subcategory_ids)
        self._set_variants(product, variants)
        return product

    def update(self, instance, validated_data):
        category_ids = validated_data.pop('category_ids', None)
        subcategory_ids = validated_data.pop('subcategory_ids', None)
        variants = validated_data.pop('variants', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        instance.save()
        self._set_relations(instance, category_ids, subcategory_ids)
        self._set_variants(instance, variants)
        return instance


class BulkIdsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)


class BulkPublishSerializer(BulkIdsSerializer):
    published = serializers.BooleanField()


class CsvUploadSerializer(serializers.Serializer):
    file = serializers.FileField()


class BulkArchiveSerializer(BulkIdsSerializer):
    archive = serializers.BooleanField(default=True)
