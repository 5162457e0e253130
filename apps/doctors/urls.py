# apps/doctors/urls.py

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DoctorScheduleViewSet

router = DefaultRouter()
router.register(r'schedules', DoctorScheduleViewSet, basename='doctor-schedule')

urlpatterns = [
    path('', include(router.urls)),
]
