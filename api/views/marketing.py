"""
Storefront offer endpoints: bulk orders, special offers and marquee offers

The three resources share one shape, so each is a thin subclass naming
its model and serializer.
"""
import logging

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.marketing.models import BulkOrder, MarqueeOffer, SpecialOffer
from api.permissions import IsStaffMember, ReadOnlyOrStaff
from api.responses import get_or_404, invalid_request
from api.serializers.marketing import BulkOrderSerializer, MarqueeOfferSerializer, SpecialOfferSerializer

logger = logging.getLogger(__name__)


class OfferListView(APIView):
    """Public list of active entries; staff may create."""
    permission_classes = [ReadOnlyOrStaff]
    model = None
    serializer_class = None
    ordering = ('order', '-created_at')

    def get(self, request):
        queryset = self.model.objects.filter(is_active=True).order_by(*self.ordering)
        return Response({"success": True, "data": self.serializer_class(queryset, many=True).data})

    def post(self, request):
        serializer = self.serializer_class(data=request.data)
        if not serializer.is_valid():
            return invalid_request(serializer)
        instance = serializer.save()
        logger.info(f"{self.model._meta.verbose_name} {instance.pk} created")
        return Response(
            {"success": True, "data": self.serializer_class(instance).data},
            status=status.HTTP_201_CREATED,
        )


class OfferAdminListView(APIView):
    """Every entry, active or not."""
    permission_classes = [IsStaffMember]
    model = None
    serializer_class = None
    ordering = ('order', '-created_at')

    def get(self, request):
        queryset = self.model.objects.all().order_by(*self.ordering)
        return Response({"success": True, "data": self.serializer_class(queryset, many=True).data})


class OfferDetailView(APIView):
    model = None
    serializer_class = None

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsStaffMember()]

    def get(self, request, pk):
        instance = get_or_404(self.model, pk=pk)
        return Response({"success": True, "data": self.serializer_class(instance).data})

    def put(self, request, pk):
        instance = get_or_404(self.model, pk=pk)
        serializer = self.serializer_class(instance, data=request.data, partial=True)
        if not serializer.is_valid():
            return invalid_request(serializer)
        instance = serializer.save()
        return Response({"success": True, "data": self.serializer_class(instance).data})

    def delete(self, request, pk):
        instance = get_or_404(self.model, pk=pk)
        instance.delete()
        logger.info(f"{self.model._meta.verbose_name} {pk} deleted")
        return Response({"success": True, "message": f"{self.model._meta.verbose_name} deleted successfully"})


@extend_schema(tags=['bulk-orders'])
class BulkOrderListView(OfferListView):
    model = BulkOrder
    serializer_class = BulkOrderSerializer
    ordering = ('-created_at',)


@extend_schema(tags=['bulk-orders'])
class BulkOrderAdminListView(OfferAdminListView):
    model = BulkOrder
    serializer_class = BulkOrderSerializer
    ordering = ('-created_at',)


@extend_schema(tags=['bulk-orders'])
class BulkOrderDetailView(OfferDetailView):
    model = BulkOrder
    serializer_class = BulkOrderSerializer


@extend_schema(tags=['special-offers'])
class SpecialOfferListView(OfferListView):
    model = SpecialOffer
    serializer_class = SpecialOfferSerializer


@extend_schema(tags=['special-offers'])
class SpecialOfferAdminListView(OfferAdminListView):
    model = SpecialOffer
    serializer_class = SpecialOfferSerializer


@extend_schema(tags=['special-offers'])
class SpecialOfferDetailView(OfferDetailView):
    model = SpecialOffer
    serializer_class = SpecialOfferSerializer


@extend_schema(tags=['marquee-offers'])
class MarqueeOfferListView(OfferListView):
    model = MarqueeOffer
    serializer_class = MarqueeOfferSerializer


@extend_schema(tags=['marquee-offers'])
class MarqueeOfferAdminListView(OfferAdminListView):
    model = MarqueeOffer
    serializer_class = MarqueeOfferSerializer


@extend_schema(tags=['marquee-offers'])
class MarqueeOfferDetailView(OfferDetailView):
    model = MarqueeOffer
    serializer_class = MarqueeOfferSerializer
