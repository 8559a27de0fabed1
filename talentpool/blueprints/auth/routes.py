from flask import current_app, jsonify
from flask_wtf.csrf import generate_csrf
from flask_login import login_user, logout_user, login_required, current_user
from . import bp
from .forms import LoginForm
from ...models.user import User

@bp.get("/csrf-token")
def csrf_token():
    """Token for the form posts (login, upload); sent back as the `csrf_token` field."""
    return jsonify({"csrfToken": generate_csrf()})

@bp.route("/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({"error": "invalid_form", "message": "Invalid form", "details": form.errors}), 400
    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if user is None or not user.check_password(form.password.data):
        current_app.logger.info('Failed login for %s', form.email.data)
        return jsonify({"error": "invalid_credentials", "message": "Invalid credentials"}), 401
    login_user(user)
    return jsonify({"id": user.id, "email": user.email, "name": user.name, "role": user.role})

@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    uid = current_user.id
    logout_user()
    return jsonify({"ok": True, "id": uid})
