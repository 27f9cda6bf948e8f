import django_filters

from .models import Hotel


class HotelFilter(django_filters.FilterSet):
    city = django_filters.CharFilter(lookup_expr='iexact')
    country = django_filters.CharFilter(lookup_expr='iexact')
    min_rating = django_filters.NumberFilter(field_name='rating', lookup_expr='gte')
    search = django_filters.CharFilter(field_name='name', lookup_expr='icontains')

    class Meta:
        model = Hotel
        fields = ['city', 'country', 'min_rating', 'search']
