from functools import wraps
from flask import abort
from flask_login import current_user

from gymsuite.errors import PermissionDenied


def gym_required(f):
    """
    Decorator to require a profile attached to a gym

    Every data route reads and writes current_user.gym_id only.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)

        if current_user.gym_id is None:
            raise PermissionDenied('Profile is not attached to a gym')

        return f(*args, **kwargs)
    return decorated_function


def role_required(*roles):
    """
    Decorator to require specific roles

    Usage:
        @role_required('owner', 'admin')
        def my_view():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if current_user.role not in roles:
                raise PermissionDenied(f'Requires one of roles: {", ".join(roles)}')

            return f(*args, **kwargs)
        return decorated_function
    return decorator


def coaches_manager_required(f):
    """Decorator to require owner, admin or manager"""
    return role_required('owner', 'admin', 'manager')(f)


def staff_manager_required(f):
    """Decorator to require owner or admin"""
    return role_required('owner', 'admin')(f)


def owner_required(f):
    """Decorator to require owner role"""
    return role_required('owner')(f)
