import logging
import os

import click
from flask import Flask, jsonify
from flask.cli import with_appcontext
from flask_cors import CORS

from .config import INSTANCE_DIR, Config
from .errors import ServiceError
from .models import User, db
from .models.user import ROLE_ADMIN, ROLE_SUPER_ADMIN
from .services.email_service import build_mailer
from .services.notification_service import EXTENSION_KEY, NotificationDispatcher
from .utils.debug_routes import register_debug_routes

from .blueprints.newsletter import bp as newsletter_bp
from .blueprints.orders import bp as orders_bp
from .blueprints.products import bp as products_bp
from .blueprints.projects import bp as projects_bp
from .blueprints.quotes import bp as quotes_bp
from .blueprints.users import bp as users_bp

logger = logging.getLogger(__name__)


def create_app(config_overrides=None, mailer=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # CORS only for the configured frontends on /api/*
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    db.init_app(app)
    with app.app_context():
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///"):
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]) or INSTANCE_DIR, exist_ok=True)
        db.create_all()

    app.extensions[EXTENSION_KEY] = NotificationDispatcher(
        mailer or build_mailer(app.config),
        admin_emails=app.config["ADMIN_EMAILS"],
        frontend_url=app.config["FRONTEND_URL"],
        brand=app.config["EMAIL_SENDER_NAME"],
    )

    @app.errorhandler(ServiceError)
    def handle_service_error(e: ServiceError):
        if e.status_code >= 500:
            logger.error("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.get("/api/health")
    def health():
        return jsonify({"status": "healthy", "service": "MGV Backend"}), 200

    app.register_blueprint(orders_bp, url_prefix="/api/orders")
    app.register_blueprint(products_bp, url_prefix="/api/products")
    app.register_blueprint(users_bp, url_prefix="/api/users")
    app.register_blueprint(quotes_bp, url_prefix="/api")
    app.register_blueprint(newsletter_bp, url_prefix="/api/newsletter")
    app.register_blueprint(projects_bp, url_prefix="/api/projects")

    register_debug_routes(app)
    app.cli.add_command(create_admin)

    return app


@click.command("create-admin")
@click.option("--name", required=True)
@click.option("--email", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--super", "is_super", is_flag=True, help="Grant the super admin role.")
@with_appcontext
def create_admin(name, email, password, is_super):
    """Create an admin account, or promote an existing user."""
    email = email.strip().lower()
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(name=name.strip(), email=email)
        db.session.add(user)
    user.set_password(password)
    user.role = ROLE_SUPER_ADMIN if is_super else ROLE_ADMIN
    user.is_active = True
    db.session.commit()
    click.echo(f"{user.role} account ready: {user.email}")
