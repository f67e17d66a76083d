import os
import sqlite3
from datetime import timedelta
from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate, upgrade
from sqlalchemy import event
from sqlalchemy.engine import Engine
from dotenv import load_dotenv

# Load environment variables (override=True ensures .env values take precedence)
load_dotenv(override=True)

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


@event.listens_for(Engine, 'connect')
def _configure_sqlite_connection(dbapi_connection, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        # Let SQLAlchemy emit BEGIN itself (see _begin_sqlite_immediate)
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


@event.listens_for(Engine, 'begin')
def _begin_sqlite_immediate(conn):
    """SQLite has no SELECT ... FOR UPDATE; take the write lock when the transaction starts."""
    # Serializes reads too, which is fine for dev and tests; deployments run on Postgres
    if conn.dialect.name == 'sqlite':
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def create_app(config_name=None):
    """Application factory pattern."""
    app = Flask(__name__)

    # Configuration
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///dev.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Sessions last as long as the old 24h API tokens did
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=1)
    app.config['SESSION_COOKIE_SECURE'] = os.environ.get('PRODUCTION') is not None  # HTTPS only in production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'

    # List endpoints
    app.config['DEFAULT_PAGE_SIZE'] = 10
    app.config['MAX_PAGE_SIZE'] = 100

    # Owner analytics
    app.config['ANALYTICS_DEFAULT_PERIOD_DAYS'] = 30

    # Bootstrap admin for `flask create-admin`
    app.config['ADMIN_EMAIL'] = os.environ.get('ADMIN_EMAIL', 'admin@storerating.local')
    app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD')

    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('TEST_DATABASE_URL', 'sqlite://')
        app.config['SESSION_COOKIE_SECURE'] = False

    # Fix for postgres:// vs postgresql:// (some providers use older postgres:// format)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1
        )

    app.logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from storerating.routes.main import main_bp
    from storerating.routes.auth import auth_bp
    from storerating.routes.ratings import ratings_bp
    from storerating.routes.stores import stores_bp
    from storerating.routes.owner import owner_bp
    from storerating.routes.admin import admin_bp
    from storerating.routes.users import users_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(ratings_bp)
    app.register_blueprint(stores_bp)
    app.register_blueprint(owner_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(users_bp)

    register_error_handlers(app)

    from storerating.cli import register_commands
    register_commands(app)

    # Import models so they're known to Flask-Migrate
    from storerating import models

    # Apply pending migrations on deploy
    if os.environ.get('PRODUCTION') and config_name != 'testing':
        with app.app_context():
            upgrade()

    return app


def register_error_handlers(app):
    """Render service errors and unknown API routes as JSON."""
    from storerating.errors import ServiceError

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        return jsonify({'success': False, 'error': error.message}), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        if request.path.startswith('/api'):
            return jsonify({'success': False, 'error': 'Route not found'}), 404
        return error

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405
