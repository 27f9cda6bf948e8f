from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import login, register, user_profile

urlpatterns = [
    path('register', register, name='auth-register'),
    path('login', login, name='auth-login'),
    path('token/refresh', TokenRefreshView.as_view(), name='token-refresh'),
    path('me', user_profile, name='auth-me'),
]
