from rest_framework.response import Response

from .caching import cache_service


class CachedListMixin:
    """
    Serve `list` from the cache. Subclasses name the profile and build the
    key, usually from the query string so each filter/page combination is
    cached separately.
    """
    list_cache_profile = 'Default'

    def get_list_cache_key(self, request):
        raise NotImplementedError

    def list(self, request, *args, **kwargs):
        key = self.get_list_cache_key(request)
        data = cache_service.get(key)
        if data is not None:
            return Response(data)
        response = super().list(request, *args, **kwargs)
        cache_service.set(key, response.data, self.list_cache_profile)
        return response


class CachedRetrieveMixin:
    detail_cache_profile = 'Default'

    def get_detail_cache_key(self, request):
        raise NotImplementedError

    def retrieve(self, request, *args, **kwargs):
        key = self.get_detail_cache_key(request)
        data = cache_service.get(key)
        if data is not None:
            return Response(data)
        response = super().retrieve(request, *args, **kwargs)
        cache_service.set(key, response.data, self.detail_cache_profile)
        return response
