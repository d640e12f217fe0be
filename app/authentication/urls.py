"""
URL configuration for authentication.

Routes (prefixed with /api/v1/auth/):
    token/          - Obtain access/refresh JWT pair (email + password)
    token/refresh/  - Rotate a refresh token
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

app_name = "authentication"

urlpatterns = [
    path("token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
]
