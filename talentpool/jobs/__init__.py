from flask import has_app_context


def run_in_app_context(fn, *args, **kwargs):
    """Run `fn` in the current app context, or in a fresh one inside an RQ worker."""
    if has_app_context():
        return fn(*args, **kwargs)
    from .. import create_app
    app = create_app()
    with app.app_context():
        return fn(*args, **kwargs)
