from rest_framework.permissions import BasePermission, SAFE_METHODS


def _role(request):
    return getattr(request.user, 'role', None)


class IsAdminOnly(BasePermission):
    """Only admin users can access"""
    def has_permission(self, request, view):
        return request.user.is_authenticated and _role(request) == 'admin'


class IsAdminOrHotelManager(BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and _role(request) in ('admin', 'hotel_manager')


class IsAdminOrReadOnly(BasePermission):
    """
    Anyone may read; only admins may write.
    """
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return request.user.is_authenticated and _role(request) == 'admin'


class IsStaffOrReadOnly(BasePermission):
    """
    Anyone may read; admins and hotel managers may write.
    """
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return request.user.is_authenticated and _role(request) in ('admin', 'hotel_manager')


def is_staff_user(user):
    return getattr(user, 'role', None) in ('admin', 'hotel_manager')
