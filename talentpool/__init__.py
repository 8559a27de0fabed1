from flask import Flask, jsonify
from flask_migrate import Migrate
from pydantic import ValidationError
from sqlalchemy import event
from werkzeug.exceptions import HTTPException

from .errors import TalentPoolError
from .extensions import db, login_manager, rq

migrate = Migrate()


def _sqlite_savepoints(engine):
    # pysqlite manages BEGIN itself and breaks SAVEPOINT; hand it to SQLAlchemy
    @event.listens_for(engine, "connect")
    def _connect(dbapi_conn, _record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_app(config_object='config.Config'):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    rq.init_app(app)

    with app.app_context():
        if db.engine.dialect.name == "sqlite":
            _sqlite_savepoints(db.engine)

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "unauthorized", "message": "Login required"}), 401

    from .blueprints.auth import bp as auth_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    from .blueprints.talent_pool import bp as talent_pool_bp
    app.register_blueprint(talent_pool_bp, url_prefix="/talent-pool")

    @app.errorhandler(TalentPoolError)
    def handle_talent_pool_error(e):
        if e.status_code >= 500:
            app.logger.error('%s: %s', e.code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        return jsonify({"error": "invalid_payload", "message": "Invalid payload", "details": errors}), 422

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.name.lower().replace(" ", "_"), "message": e.description}), e.code

    @app.get('/healthz')
    def healthz():
        return jsonify({"ok": True})

    return app
