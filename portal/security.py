# portal/security.py
from functools import wraps

from flask import abort
from flask_login import current_user


def roles_required(*roles):
    """403 unless the signed-in user holds one of ``roles``.

    Stack under ``@login_required`` so anonymous users are sent to login first.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated or not current_user.has_role(*roles):
                abort(403)
            return view(*args, **kwargs)
        return wrapped
    return decorator
