"""
Subcategory endpoints
"""
import logging

from django.db import transaction
from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog import services as catalog_services
from apps.catalog.models import Category, CategorySubcategoryMap, Subcategory
from apps.core.exceptions import ResourceNotFoundException
from apps.core.utils import parse_bool, parse_int, parse_uuid
from api.permissions import ReadOnlyOrStaff, is_staff
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.catalog import CategorySerializer, SubcategorySerializer, SubcategoryWriteSerializer

logger = logging.getLogger(__name__)


def _sync_categories(subcategory, category_ids, created_by):
    """Map the subcategory to exactly ``category_ids``."""
    categories = list(Category.objects.filter(pk__in=category_ids))
    if len(categories) != len(set(category_ids)):
        found = {c.pk for c in categories}
        missing = [str(pk) for pk in category_ids if pk not in found]
        raise ResourceNotFoundException("Category", ', '.join(missing))

    current = set(
        CategorySubcategoryMap.objects.filter(subcategory=subcategory).values_list('category_id', flat=True)
    )
    wanted = {c.pk for c in categories}
    for category in categories:
        if category.pk not in current:
            catalog_services.add_subcategory_to_category(
                category, subcategory, is_primary=not current, created_by=created_by
            )
            current.add(category.pk)
    for category in Category.objects.filter(pk__in=current - wanted):
        catalog_services.remove_subcategory_from_category(category, subcategory)


class SubcategoryListView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    @extend_schema(
        parameters=[
            OpenApiParameter('search', str),
            OpenApiParameter('category', str, description='Category id'),
            OpenApiParameter('published', bool),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: SubcategorySerializer(many=True)},
    )
    def get(self, request):
        params = request.query_params
        queryset = Subcategory.objects.all().order_by('name')

        search = params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(slug__icontains=search))
        category = params.get('category')
        if category:
            category_id = parse_uuid(category)
            if category_id is None:
                queryset = queryset.none()
            else:
                queryset = queryset.filter(category_maps__category_id=category_id).distinct()
        published = parse_bool(params.get('published'))
        if not is_staff(request.user):
            published = True
        if published is not None:
            queryset = queryset.filter(published=published)

        return paginated_response(request, queryset, SubcategorySerializer)

    @extend_schema(request=SubcategoryWriteSerializer, responses={201: SubcategorySerializer})
    def post(self, request):
        serializer = SubcategoryWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        data = dict(serializer.validated_data)
        category_ids = data.pop('category_ids', [])

        with transaction.atomic():
            subcategory = Subcategory.objects.create(created_by=request.user, **data)
            _sync_categories(subcategory, category_ids, request.user)

        logger.info(f"Subcategory {subcategory.slug} created in {len(category_ids)} categories")
        return Response(
            {"success": True, "data": SubcategorySerializer(subcategory).data},
            status=status.HTTP_201_CREATED,
        )


class SubcategoryDetailView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request, subcategory_id):
        subcategory = get_or_404(Subcategory, "Subcategory", pk=subcategory_id)
        if not subcategory.published and not is_staff(request.user):
            raise ResourceNotFoundException("Subcategory", subcategory_id)
        return Response({"success": True, "data": SubcategorySerializer(subcategory).data})

    @extend_schema(request=SubcategoryWriteSerializer, responses={200: SubcategorySerializer})
    def put(self, request, subcategory_id):
        subcategory = get_or_404(Subcategory, "Subcategory", pk=subcategory_id)
        serializer = SubcategoryWriteSerializer(subcategory, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        data = dict(serializer.validated_data)
        category_ids = data.pop('category_ids', None)

        with transaction.atomic():
            for attr, value in data.items():
                setattr(subcategory, attr, value)
            subcategory.save()
            if category_ids is not None:
                _sync_categories(subcategory, category_ids, request.user)

        return Response({"success": True, "data": SubcategorySerializer(subcategory).data})

    def delete(self, request, subcategory_id):
        subcategory = get_or_404(Subcategory, "Subcategory", pk=subcategory_id)
        subcategory.delete()
        logger.info(f"Subcategory {subcategory.slug} deleted")
        return Response({"success": True, "message": "Subcategory deleted successfully"})


class SubcategoryCategoriesView(APIView):
    permission_classes = [ReadOnlyOrStaff]

    def get(self, request, subcategory_id):
        subcategory = get_or_404(Subcategory, "Subcategory", pk=subcategory_id)
        params = request.query_params
        published = parse_bool(params.get('published'))
        if not is_staff(request.user):
            published = True
        entries = catalog_services.get_categories_by_subcategory(
            subcategory,
            published=published,
            limit=parse_int(params.get('limit'), 0, minimum=0) or None,
            skip=parse_int(params.get('skip'), 0, minimum=0),
        )
        data = [
            {**CategorySerializer(e['category']).data, "sort_order": e['sort_order'], "is_primary": e['is_primary']}
            for e in entries
        ]
        return Response({"success": True, "data": data})
