from functools import wraps
from flask import abort
from flask_login import current_user


def hr_required(view):
    """Talent pool views are open to HR staff and admins only."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401)
        if not current_user.is_hr:
            abort(403)
        return view(*args, **kwargs)
    return wrapped
