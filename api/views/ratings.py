"""
Product rating endpoints
"""
import logging

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.catalog.models import Product
from apps.reviews import services as review_services
from apps.reviews.models import Rating
from api.permissions import IsCustomer, IsStaffMember
from api.responses import get_or_404, invalid_request, paginated_response
from api.serializers.reviews import RatingSerializer, RatingStatusSerializer, RatingSubmitSerializer

logger = logging.getLogger(__name__)


class RatingSubmitView(APIView):
    """
    Rate a product from one of the customer's delivered orders.

    Submitting again replaces the earlier rating and sends it back to
    moderation.
    """
    permission_classes = [IsCustomer]

    @extend_schema(request=RatingSubmitSerializer, responses={201: RatingSerializer})
    def post(self, request):
        serializer = RatingSubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        rating = review_services.submit_rating(request.user, serializer.validated_data)
        return Response(
            {"success": True, "message": "Rating submitted for review", "data": RatingSerializer(rating).data},
            status=status.HTTP_201_CREATED,
        )


class ProductRatingsView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, product_id):
        product = get_or_404(Product, "Product", pk=product_id)
        queryset = (
            Rating.objects.filter(product=product, status='approved')
            .select_related('customer', 'product')
            .order_by('-created_at')
        )
        return paginated_response(request, queryset, RatingSerializer, extra={
            "averageRating": product.average_rating,
            "totalRatings": product.total_ratings,
            "totalReviews": product.total_reviews,
        })


class MyRatingsView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request):
        queryset = Rating.objects.filter(customer=request.user).select_related('customer', 'product')
        return paginated_response(request, queryset.order_by('-created_at'), RatingSerializer)


class RatingAdminListView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(
        parameters=[
            OpenApiParameter('status', str),
            OpenApiParameter('productId', str),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: RatingSerializer(many=True)},
    )
    def get(self, request):
        queryset = Rating.objects.select_related('customer', 'product').order_by('-created_at')
        rating_status = request.query_params.get('status')
        if rating_status:
            queryset = queryset.filter(status=rating_status)
        product_id = request.query_params.get('productId')
        if product_id:
            get_or_404(Product, "Product", pk=product_id)
            queryset = queryset.filter(product_id=product_id)
        return paginated_response(request, queryset, RatingSerializer)


class RatingAdminDetailView(APIView):
    permission_classes = [IsStaffMember]

    @extend_schema(request=RatingStatusSerializer, responses={200: RatingSerializer})
    def patch(self, request, rating_id):
        rating = get_or_404(Rating, "Rating", pk=rating_id)
        serializer = RatingStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        rating = review_services.set_rating_status(rating, serializer.validated_data['status'])
        return Response({"success": True, "data": RatingSerializer(rating).data})

    def delete(self, request, rating_id):
        rating = get_or_404(Rating, "Rating", pk=rating_id)
        review_services.delete_rating(rating)
        logger.info(f"Rating {rating_id} deleted by {request.user.email}")
        return Response({"success": True, "message": "Rating deleted successfully"})
