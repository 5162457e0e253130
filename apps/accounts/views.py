# apps/accounts/views.py

from rest_framework import generics
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.permissions import IsAuthenticatedAndActive
from .serializers import CustomTokenObtainPairSerializer, UserSerializer


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshView(TokenRefreshView):
    pass


class MeView(generics.RetrieveUpdateAPIView):
    """Get or update current user profile"""

    serializer_class = UserSerializer
    permission_classes = [IsAuthenticatedAndActive]

    def get_object(self):
        return self.request.user
