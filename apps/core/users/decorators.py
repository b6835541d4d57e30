from functools import wraps

from apps.core.utils.responses import json_error


def _normalize_roles(allowed_roles):
    if isinstance(allowed_roles, str):
        return {allowed_roles}
    return set(allowed_roles)


def role_required(allowed_roles):
    """
    Restrict a JSON view to authenticated users holding one of the roles.
    Usage: @role_required(['admin', 'teacher'])
    """
    normalized_roles = _normalize_roles(allowed_roles)

    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return json_error('Authentication required.', status=401)

            if request.user.role not in normalized_roles:
                return json_error('Access forbidden: insufficient permissions.', status=403)

            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator


def login_required_json(view_func):
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error('Authentication required.', status=401)
        return view_func(request, *args, **kwargs)

    return wrapper
