from rest_framework.permissions import BasePermission


class IsInstructor(BasePermission):
    """Quiz owners and superusers; learners only ever reach their own attempts."""

    def has_permission(self, request, view):
        return bool(
            request.user
            and request.user.is_authenticated
            and (request.user.is_superuser or hasattr(request.user, 'instructor'))
        )
