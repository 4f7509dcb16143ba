from rest_framework.permissions import BasePermission


class IsEmployee(BasePermission):
    """Referral employees only."""
    message = 'Employee access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_employee())


class IsAdminRole(BasePermission):
    """Admins (role=admin or Django staff) only."""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin())
