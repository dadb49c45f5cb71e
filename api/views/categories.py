"""
Category endpoints

Covers category CRUD with nested subcategories, bulk actions, the
category/subcategory mapping endpoints, exports and CSV import.
"""
import logging

from django.db import transaction
from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.analytics.cache import invalidate_reports
from apps.catalog import services as catalog_services
from apps.catalog.models import Category, Subcategory
from apps.core.csv_export import csv_response, dated_filename, field, format_date, format_yes_no, json_response
from apps.core.csv_import import ImportReport, missing_columns, read_rows, split_list
from apps.core.exceptions import ResourceNotFoundException
from apps.core.utils import parse_bool, parse_int
from api.permissions import IsStaffMember, ReadOnlyOrStaff, is_staff
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.catalog import (
    BulkIdsSerializer,
    BulkPublishSerializer,
    CategoryRefSerializer,
    CategorySerializer,
    CategoryWriteSerializer,
    CsvUploadSerializer,
    MappingCreateSerializer,
    ProductSerializer,
    SubcategorySerializer,
)

logger = logging.getLogger(__name__)

CATEGORY_CSV_FIELDS = [
    field('Name', 'name'),
    field('Slug', 'slug'),
    field('Description', 'description'),
    field('Image URL', 'image_url'),
    field('Published', 'published', format_yes_no),
    field('Subcategories', 'subcategory_names'),
    field('SEO Title', 'seo_title'),
    field('SEO Description', 'seo_description'),
    field('Created At', 'created_at', format_date),
]

IMPORT_REQUIRED_COLUMNS = ['Name', 'Slug']


def filter_categories(request):
    params = request.query_params
    queryset = Category.objects.all().order_by('-created_at')

    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(name__icontains=search)
            | Q(slug__icontains=search)
            | Q(description__icontains=search)
            | Q(subcategory_maps__subcategory__name__icontains=search)
        ).distinct()

    published = parse_bool(params.get('published'))
    if not is_staff(request.user):
        published = True
    if published is not None:
        queryset = queryset.filter(published=published)
    return queryset


def save_category(serializer, created_by, instance=None):
    """
    Persist a validated category payload, replacing its subcategory set
    when ``subcategories`` was supplied.
    """
    data = dict(serializer.validated_data)
    subcategories = data.pop('subcategories', None)

    with transaction.atomic():
        if instance is None:
            instance = Category.objects.create(created_by=created_by, **data)
        else:
            for attr, value in data.items():
                setattr(instance, attr, value)
            if 'slug' in data and not data['slug']:
                instance.slug = ''
            instance.save()
        if subcategories is not None:
            catalog_services.set_category_subcategories(instance, subcategories, created_by=created_by)
    return instance


class CategoryListView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str, description='Match category fields or subcategory names'),
            OpenApiParameter('published', bool),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: CategorySerializer(many=True)},
    )
    def get(self, request):
        return paginated_response(request, filter_categories(request), CategorySerializer)

    @extend_schema(request=CategoryWriteSerializer, responses={201: CategorySerializer})
    def post(self, request):
        serializer = CategoryWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        category = save_category(serializer, request.user)
        logger.info(f"Category {category.slug} created")
        return Response({"success": True, "data": CategorySerializer(category).data}, status=status.HTTP_201_CREATED)


class CategoryDropdownView(APIView):
    """Compact ``{id, name, slug}`` list; ``all=true`` includes unpublished."""
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request):
        queryset = Category.objects.order_by('name')
        if not parse_bool(request.query_params.get('all'), False):
            queryset = queryset.filter(published=True)
        return Response({"success": True, "data": CategoryRefSerializer(queryset, many=True).data})


class CategoryDetailView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        if not category.published and not is_staff(request.user):
            raise ResourceNotFoundException("Category", category_id)
        return Response({"success": True, "data": CategorySerializer(category).data})

    @extend_schema(request=CategoryWriteSerializer, responses={200: CategorySerializer})
    def put(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        serializer = CategoryWriteSerializer(category, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        category = save_category(serializer, request.user, instance=category)
        return Response({"success": True, "data": CategorySerializer(category).data})

    def delete(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        result = catalog_services.delete_category(category)
        return Response({"success": True, "message": "Category deleted successfully", **result})


class CategoryBulkView(APIView):
    """
    POST fetches categories by id; DELETE removes them.
    """
    permission_classes = [IsStaffMember]

    @extend_schema(request=BulkIdsSerializer, responses={200: CategorySerializer(many=True)})
    def post(self, request):
        serializer = BulkIdsSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        categories = Category.objects.filter(pk__in=serializer.validated_data['ids'])
        return Response({"success": True, "data": CategorySerializer(categories, many=True).data})

    @extend_schema(request=BulkIdsSerializer)
    def delete(self, request):
        serializer = BulkIdsSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)

        deleted = 0
        removed_subcategories = 0
        with transaction.atomic():
            for category in Category.objects.filter(pk__in=serializer.validated_data['ids']):
                result = catalog_services.delete_category(category)
                removed_subcategories += result['deletedSubcategories']
                deleted += 1
        logger.info(f"Bulk deleted {deleted} categories")
        return Response({
            "success": True,
            "message": f"{deleted} categories deleted",
            "deletedCount": deleted,
            "deletedSubcategories": removed_subcategories,
        })


class CategoryBulkPublishView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=BulkPublishSerializer)
    def patch(self, request):
        serializer = BulkPublishSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        updated = Category.objects.filter(pk__in=serializer.validated_data['ids']).update(
            published=serializer.validated_data['published']
        )
        transaction.on_commit(invalidate_reports)
        return Response({"success": True, "modifiedCount": updated})


class CategoryTogglePublishedView(APIView):
    permission_classes = [IsStaffMember]

    def patch(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        category.published = not category.published
        category.save(update_fields=['published', 'updated_at'])
        return Response({"success": True, "data": CategorySerializer(category).data})


class CategorySubcategoriesView(APIView):
    """Subcategories mapped to a category, and adding a new mapping."""
    permission_classes = [ReadOnlyOrStaff]

    @extend_schema(parameters=[
        OpenApiParameter('published', bool),
        OpenApiParameter('limit', int),
        OpenApiParameter('skip', int),
    ])
    def get(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        params = request.query_params
        published = parse_bool(params.get('published'))
        if not is_staff(request.user):
            published = True
        entries = catalog_services.get_subcategories_by_category(
            category,
            published=published,
            limit=parse_int(params.get('limit'), 0, minimum=0) or None,
            skip=parse_int(params.get('skip'), 0, minimum=0),
        )
        data = [
            {**SubcategorySerializer(e['subcategory']).data, "sort_order": e['sort_order'], "is_primary": e['is_primary']}
            for e in entries
        ]
        return Response({"success": True, "data": data})

    @extend_schema(request=MappingCreateSerializer)
    def post(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        serializer = MappingCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        data = serializer.validated_data
        subcategory = get_or_404(Subcategory, "Subcategory", pk=data['subcategory_id'])
        mapping = catalog_services.add_subcategory_to_category(
            category, subcategory,
            sort_order=data['sort_order'],
            is_primary=data['is_primary'],
            created_by=request.user,
        )
        return Response(
            {
                "success": True,
                "data": {
                    "id": str(mapping.pk),
                    "category": str(category.pk),
                    "subcategory": str(subcategory.pk),
                    "sort_order": mapping.sort_order,
                    "is_primary": mapping.is_primary,
                },
            },
            status=status.HTTP_201_CREATED,
        )


class CategorySubcategoryDetailView(APIView):
    permission_classes = [IsStaffMember]

    def delete(self, request, category_id, subcategory_id):
        category = get_or_404(Category, "Category", pk=category_id)
        subcategory = get_or_404(Subcategory, "Subcategory", pk=subcategory_id)
        catalog_services.remove_subcategory_from_category(category, subcategory)
        return Response({"success": True, "message": "Subcategory removed from category"})


class CategoryProductsView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request, category_id):
        category = get_or_404(Category, "Category", pk=category_id)
        params = request.query_params
        published = parse_bool(params.get('published'))
        if not is_staff(request.user):
            published = True
        products = catalog_services.get_products_by_category(
            category,
            published=published,
            limit=parse_int(params.get('limit'), 0, minimum=0) or None,
            skip=parse_int(params.get('skip'), 0, minimum=0),
        )
        return Response({"success": True, "data": ProductSerializer(products, many=True).data})


class CategoryExportView(APIView):
    permission_classes = [IsStaffMember]

    def get(self, request, export_format):
        categories = list(filter_categories(request).prefetch_related('subcategory_maps__subcategory'))
        if not categories:
            raise ResourceNotFoundException("Categories")

        for category in categories:
            category.subcategory_names = [m.subcategory.name for m in category.subcategory_maps.all()]

        filename = dated_filename('categories')
        if export_format == 'csv':
            return csv_response(categories, CATEGORY_CSV_FIELDS, filename)
        records = CategorySerializer(categories, many=True).data
        return json_response(records, filename, {
            "search": request.query_params.get('search'),
            "published": request.query_params.get('published'),
        })


class CategoryImportView(APIView):
    """
    Import categories from CSV.

    ``Name`` and ``Slug`` are required; rows whose slug already exists are
    skipped. ``Subcategories`` holds ``;``-separated names.
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
            missing = missing_columns(row, IMPORT_REQUIRED_COLUMNS)
            if missing:
                report.skip(row_number, f"Missing required fields: {', '.join(missing)}")
                continue
            if Category.objects.filter(slug=row['Slug']).exists():
                report.skip(row_number, f"Category with slug {row['Slug']} already exists")
                continue
            if Category.objects.filter(name=row['Name']).exists():
                report.skip(row_number, f"Category name '{row['Name']}' already exists")
                continue

            with report.row(row_number):
                with transaction.atomic():
                    category = Category.objects.create(
                        name=row['Name'],
                        slug=row['Slug'],
                        description=row.get('Description', ''),
                        image_url=row.get('Image URL', ''),
                        published=parse_bool(row.get('Published'), True),
                        seo_title=row.get('SEO Title', '')[:60],
                        seo_description=row.get('SEO Description', '')[:160],
                        created_by=request.user,
                    )
                    entries = [{"name": name} for name in split_list(row.get('Subcategories'))]
                    if entries:
                        catalog_services.set_category_subcategories(category, entries, created_by=request.user)
                report.imported += 1

        logger.info(f"Category import: {report.imported} imported, {report.skipped} skipped, {len(report.errors)} errors")
        return Response({"success": True, **report.as_dict()})
