"""
Product endpoints

Storefront callers (anonymous or customers) only ever see published
products; staff see the whole catalog.
"""
import logging
import uuid

from django.db import transaction
from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog import services as catalog_services
from apps.catalog.models import Category, Product, Subcategory
from apps.core.csv_export import (
    csv_response,
    dated_filename,
    field,
    format_currency,
    format_date,
    format_yes_no,
    json_response,
)
from apps.core.csv_import import ImportReport, missing_columns, read_rows, split_list
from apps.core.exceptions import ResourceNotFoundException
from apps.core.utils import parse_bool, parse_decimal, parse_int, unique_slug
from api.permissions import IsStaffMember, ReadOnlyOrStaff, is_staff
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.catalog import (
    BulkArchiveSerializer,
    BulkIdsSerializer,
    CsvUploadSerializer,
    ProductSerializer,
    ProductWriteSerializer,
)

logger = logging.getLogger(__name__)

SUGGESTION_LIMIT = 8
CATEGORY_SUGGESTION_LIMIT = 3


def _names(value, record):
    return '; '.join(item.name for item in value.all()) if value is not None else ''


PRODUCT_CSV_FIELDS = [
    field('Product Name', 'name'),
    field('Slug', 'slug'),
    field('SKU', 'sku'),
    field('Description', 'description'),
    field('Product Type', 'product_type'),
    field('Product Structure', 'product_structure'),
    field('Categories', 'categories', _names),
    field('Subcategories', 'subcategories', _names),
    field('Cost Price', 'cost_price', format_currency),
    field('Selling Price', 'selling_price', format_currency),
    field('Stock', 'base_stock'),
    field('Min Stock', 'min_stock'),
    field('Status', 'status'),
    field('Published', 'published', format_yes_no),
    field('Average Rating', 'average_rating'),
    field('Total Ratings', 'total_ratings'),
    field('Weight', 'weight'),
    field('Color', 'color'),
    field('Warranty', 'warranty'),
    field('COD Available', 'is_cod_available', format_yes_no),
    field('Free Shipping', 'is_free_shipping', format_yes_no),
    field('Tags', 'tags'),
    field('Created At', 'created_at', format_date),
    field('Updated At', 'updated_at', format_date),
]

IMPORT_REQUIRED_COLUMNS = ['Product Name', 'SKU']

PRICE_SORTS = {'lowest-first': 'selling_price', 'highest-first': '-selling_price'}
DATE_SORT_FIELDS = {'added': 'created_at', 'updated': 'updated_at'}


def product_queryset():
    return Product.objects.prefetch_related('categories', 'subcategories', 'variants')


def _ordering(params):
    price_sort = params.get('priceSort')
    if price_sort:
        return PRICE_SORTS.get(price_sort, '-selling_price')
    date_sort = params.get('dateSort')
    if date_sort:
        name, _, direction = date_sort.partition('-')
        column = DATE_SORT_FIELDS.get(name, 'updated_at')
        return column if direction == 'asc' else f'-{column}'
    return '-created_at'


def filter_products(request):
    """
    Apply the list filters.

    ``status`` and ``published`` are honoured as given for staff; any other
    caller is always restricted to published products.
    """
    params = request.query_params
    queryset = product_queryset()

    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search) | Q(sku__icontains=search) | Q(description__icontains=search)
        )

    category = params.get('category')
    if category:
        category_obj = Category.objects.filter(slug=category).first()
        if category_obj is not None:
            queryset = queryset.filter(
                Q(categories=category_obj)
                | Q(subcategories__category_maps__category=category_obj)
            )

    subcategory = params.get('subcategory')
    if subcategory and subcategory != 'all':
        subcategory_obj = Subcategory.objects.filter(slug=subcategory).first()
        if subcategory_obj is not None:
            queryset = queryset.filter(subcategories=subcategory_obj)

    product_type = params.get('productType')
    if product_type and product_type != 'all':
        queryset = queryset.filter(product_type=product_type)

    new_arrival = parse_bool(params.get('isNewArrival'))
    if new_arrival is not None:
        queryset = queryset.filter(is_new_arrival=new_arrival)

    color = params.get('color')
    if color:
        queryset = queryset.filter(Q(color__icontains=color) | Q(variants__attributes__icontains=color))

    product_status = params.get('status')
    if product_status:
        queryset = queryset.filter(status=product_status)

    published = parse_bool(params.get('published'))
    if not is_staff(request.user):
        published = True
    if published is not None:
        queryset = queryset.filter(published=published)

    return queryset.distinct().order_by(_ordering(params))


def find_product(lookup: str, request) -> Product:
    """Resolve a product by id or slug, hiding unpublished ones from the storefront."""
    queryset = product_queryset()
    try:
        product = queryset.filter(pk=uuid.UUID(str(lookup))).first()
    except ValueError:
        product = None
    if product is None:
        product = queryset.filter(slug=lookup).first()
    if product is None or (not product.published and not is_staff(request.user)):
        raise ResourceNotFoundException("Product", lookup)
    return product


class ProductListView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str),
            OpenApiParameter('category', str, description='Category slug'),
            OpenApiParameter('subcategory', str, description='Subcategory slug'),
            OpenApiParameter('status', str),
            OpenApiParameter('published', bool),
            OpenApiParameter('productType', str),
            OpenApiParameter('isNewArrival', bool),
            OpenApiParameter('color', str),
            OpenApiParameter('priceSort', str, description='lowest-first or highest-first'),
            OpenApiParameter('dateSort', str, description='added-asc, added-desc, updated-asc, updated-desc'),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: ProductSerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_products(request), ProductSerializer)

    @extend_schema(request=ProductWriteSerializer, responses={201: ProductSerializer})
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        with transaction.atomic():
            product = serializer.save()
        logger.info(f"Product {product.slug} created by {request.user.email}")
        return Response(
            {"success": True, "data": ProductSerializer(product_queryset().get(pk=product.pk)).data},
            status=status.HTTP_201_CREATED,
        )


class ProductSuggestionsView(APIView):
    """Search-as-you-type suggestions across published products and categories."""
    permission_classes = [ReadOnlyOrStaff]

    @extend_schema(parameters=[OpenApiParameter('query', str)])
    def get(self, request):
        query = (request.query_params.get('query') or '').strip()
        if len(query) < 2:
            return Response({"success": True, "data": []})

        products = Product.objects.filter(
            Q(name__icontains=query) | Q(tags__icontains=query), published=True
        ).prefetch_related('variants')[:SUGGESTION_LIMIT]
        categories = Category.objects.filter(name__icontains=query, published=True)[:CATEGORY_SUGGESTION_LIMIT]

        suggestions = [
            {"id": str(c.pk), "name": c.name, "slug": c.slug, "type": "category"} for c in categories
        ]
        for product in products:
            image = product.image_urls[0] if product.image_urls else ''
            price = product.selling_price
            if product.is_variant_product:
                variant = next((v for v in product.variants.all() if v.published), None)
                if variant is not None:
                    price = variant.selling_price
                    image = variant.images[0] if variant.images else image
            suggestions.append({
                "id": str(product.pk),
                "name": product.name,
                "slug": product.slug,
                "image": image,
                "price": price,
                "type": "product",
            })
        return Response({"success": True, "data": suggestions})


class ProductDetailView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request, lookup):
        product = find_product(lookup, request)
        return Response({"success": True, "data": ProductSerializer(product).data})

    @extend_schema(request=ProductWriteSerializer, responses={200: ProductSerializer})
    def put(self, request, lookup):
        product = find_product(lookup, request)
        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        with transaction.atomic():
            product = serializer.save()
            if 'variants' in serializer.validated_data or 'base_stock' in serializer.validated_data:
                catalog_services.refresh_product_status(product)
        return Response({"success": True, "data": ProductSerializer(product_queryset().get(pk=product.pk)).data})

    def delete(self, request, lookup):
        product = find_product(lookup, request)
        product.delete()
        logger.info(f"Product {lookup} deleted by {request.user.email}")
        return Response({"success": True, "message": "Product deleted successfully"})


class ProductBulkDeleteView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=BulkIdsSerializer)
    def delete(self, request):
        serializer = BulkIdsSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        deleted, _ = Product.objects.filter(pk__in=serializer.validated_data['ids']).delete()
        logger.info(f"Bulk deleted products ({deleted} rows including related)")
        return Response({"success": True, "message": "Products deleted successfully"})


class ProductTogglePublishedView(APIView):
    permission_classes = [IsStaffMember]

    def patch(self, request, product_id):
        product = get_or_404(Product, "Product", pk=product_id)
        product.published = not product.published
        product.save(update_fields=['published', 'updated_at'])
        return Response({"success": True, "data": {"id": str(product.pk), "published": product.published}})


class ProductToggleArchiveView(APIView):
    """Archive a live product, or restore an archived one to draft."""
    permission_classes = [IsStaffMember]

    def patch(self, request, product_id):
        product = get_or_404(Product, "Product", pk=product_id)
        product = catalog_services.toggle_archive(product)
        message = "Product archived" if product.status == 'archived' else "Product restored to draft"
        return Response({
            "success": True,
            "message": message,
            "data": {"id": str(product.pk), "status": product.status, "published": product.published},
        })


class ProductBulkArchiveView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=BulkArchiveSerializer)
    def patch(self, request):
        serializer = BulkArchiveSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        archive = serializer.validated_data['archive']
        action = catalog_services.archive_product if archive else catalog_services.restore_product

        with transaction.atomic():
            products = list(Product.objects.filter(pk__in=serializer.validated_data['ids']))
            for product in products:
                action(product)
        return Response({"success": True, "modifiedCount": len(products)})


class ProductExportView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, export_format):
        products = list(filter_products(request))
        filename = dated_filename('products')
        if export_format == 'csv':
            return csv_response(products, PRODUCT_CSV_FIELDS, filename)
        return json_response(ProductSerializer(products, many=True).data, filename, {
            "search": request.query_params.get('search'),
            "status": request.query_params.get('status'),
        })


def _product_from_row(row):
    slug = row.get('Slug') or row['Product Name']
    product_status = row.get('Status') or 'draft'
    if product_status not in dict(Product.STATUS_CHOICES):
        product_status = 'draft'
    return Product(
        name=row['Product Name'],
        slug=unique_slug(Product, slug),
        sku=row['SKU'],
        description=row.get('Description', ''),
        product_type=row.get('Product Type') if row.get('Product Type') in ('physical', 'digital') else 'physical',
        product_structure=row.get('Product Structure') if row.get('Product Structure') in ('simple', 'variant') else 'simple',
        cost_price=parse_decimal(row.get('Cost Price'), 0),
        selling_price=parse_decimal(row.get('Selling Price'), 0),
        base_stock=parse_int(row.get('Stock'), 0, minimum=0),
        min_stock=parse_int(row.get('Min Stock'), 0, minimum=0),
        status=product_status,
        published=(row.get('Published') or '').lower() == 'yes',
        weight=row.get('Weight', ''),
        color=row.get('Color', ''),
        warranty=row.get('Warranty', ''),
        is_cod_available=(row.get('COD Available') or '').lower() != 'no',
        is_free_shipping=(row.get('Free Shipping') or '').lower() == 'yes',
        tags=split_list(row.get('Tags')),
    )


class ProductImportView(APIView):
    """
    Import products from CSV. ``Product Name`` and ``SKU`` are required;
    rows whose SKU already exists are skipped.
    """
    permission_classes = [IsStaffMember]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(request={'multipart/form-data': CsvUploadSerializer})
    def post(self, request):
        serializer = CsvUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        report = ImportReport()
        for row_number, row in read_rows(serializer.validated_data['file']):
            if missing_columns(row, IMPORT_REQUIRED_COLUMNS):
                report.skip(row_number, "Missing required fields: Product Name or SKU")
                continue
            if Product.objects.filter(sku=row['SKU']).exists():
                report.skip(row_number, f"Product with SKU {row['SKU']} already exists")
                continue

            with report.row(row_number):
                with transaction.atomic():
                    product = _product_from_row(row)
                    product.save()
                    category_names = split_list(row.get('Categories'))
                    if category_names:
                        product.categories.set(Category.objects.filter(name__in=category_names))
                    subcategory_names = split_list(row.get('Subcategories'))
                    if subcategory_names:
                        product.subcategories.set(Subcategory.objects.filter(name__in=subcategory_names))
                report.imported += 1

        logger.info(f"Product import: {report.imported} imported, {report.skipped} skipped")
        return Response({
            "success": True,
            "message": f"Import completed. {report.imported} products imported, {report.skipped} skipped.",
            **report.as_dict(),
        })
