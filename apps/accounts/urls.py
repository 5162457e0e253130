# apps/accounts/urls.py

from django.urls import path
from .views import CustomTokenObtainPairView, CustomTokenRefreshView, MeView

urlpatterns = [
    # JWT token endpoints
    path('token/', CustomTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('token/refresh/', CustomTokenRefreshView.as_view(), name='token_refresh'),

    path('me/', MeView.as_view(), name='me'),
]
