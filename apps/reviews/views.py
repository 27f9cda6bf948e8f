from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import SAFE_METHODS, AllowAny, IsAuthenticated
from rest_framework.response import Response
import logging

from apps.core.serializers import DeleteOptionsSerializer
from .serializers import ReviewSerializer, ReviewUpdateSerializer
from .services import ReviewService

logger = logging.getLogger(__name__)


class ReviewListCreateView(generics.ListCreateAPIView):
    serializer_class = ReviewSerializer

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return ReviewService(logger=logger).list()

    def perform_create(self, serializer):
        data = serializer.validated_data
        serializer.instance = ReviewService(logger=logger).create(
            self.request.user.id, data['hotel_id'], data['rating'], data.get('comment', '')
        )


class ReviewDetailView(generics.RetrieveUpdateDestroyAPIView):
    serializer_class = ReviewSerializer

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_object(self):
        return ReviewService(logger=logger).get(self.kwargs['pk'])

    def update(self, request, *args, **kwargs):
        serializer = ReviewUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = ReviewService(logger=logger).update(self.kwargs['pk'], request.user, **serializer.validated_data)
        return Response(ReviewSerializer(review).data)

    def destroy(self, request, *args, **kwargs):
        options = DeleteOptionsSerializer(data=request.query_params)
        options.is_valid(raise_exception=True)
        soft = options.validated_data['is_soft']
        ReviewService(logger=logger).delete(self.kwargs['pk'], request.user, soft=soft)
        return Response(
            {'message': f"Review {self.kwargs['pk']} {'soft deleted' if soft else 'permanently deleted'} successfully"},
            status=status.HTTP_200_OK
        )


@api_view(['GET'])
@permission_classes([AllowAny])
def reviews_by_hotel(request, hotel_id):
    reviews = ReviewService(logger=logger).for_hotel(hotel_id)
    return Response(ReviewSerializer(reviews, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reviews_by_user(request, user_id):
    reviews = ReviewService(logger=logger).for_user(user_id)
    return Response(ReviewSerializer(reviews, many=True).data)
