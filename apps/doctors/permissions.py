# apps/doctors/permissions.py

from rest_framework import permissions
from core.constants import UserRoles


class DoctorSchedulePermissions(permissions.BasePermission):
    """Permissions for doctor schedules

    Anyone signed in can read a schedule; only doctors and admins write.
    Which doctor's rows a doctor may touch is decided by the view.
    """

    def has_permission(self, request, view):
        if request.method in permissions.SAFE_METHODS:
            return True

        return request.user.role in [UserRoles.DOCTOR, UserRoles.ADMIN]
