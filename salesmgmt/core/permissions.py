from rest_framework.permissions import BasePermission

from .utils import is_admin_user


class IsAdministrator(BasePermission):
    """Staff, superusers and accounts with the ADMIN role"""
    message = 'Administrator access is required.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
