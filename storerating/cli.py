"""Maintenance commands, available as `flask <command>`."""
import click
from flask import current_app

from storerating import db
from storerating.errors import ServiceError
from storerating.models import User, ROLE_ADMIN
from storerating.services.rating_store import rating_store
from storerating.validation import validate_email, validate_password


def seed_admin(email, password, name='System Administrator Account'):
    """Create the admin account if it doesn't exist. Returns summary."""
    email = validate_email(email)
    existing = User.query.filter_by(email=email).first()
    if existing:
        return {'created': False, 'user': existing}

    admin = User(name=name, email=email, role=ROLE_ADMIN)
    admin.set_password(validate_password(password))
    db.session.add(admin)
    db.session.commit()
    return {'created': True, 'user': admin}


def register_commands(app):
    @app.cli.command('create-admin')
    @click.option('--email', default=None, help='Defaults to ADMIN_EMAIL.')
    @click.option('--password', default=None, help='Defaults to ADMIN_PASSWORD.')
    @click.option('--name', default='System Administrator Account')
    def create_admin(email, password, name):
        """Create the first administrator account."""
        email = email or current_app.config['ADMIN_EMAIL']
        password = password or current_app.config['ADMIN_PASSWORD']
        if not password:
            raise click.UsageError('Pass --password or set ADMIN_PASSWORD')

        try:
            result = seed_admin(email, password, name)
        except ServiceError as e:
            raise click.UsageError(e.message)
        if result['created']:
            click.echo(f"Admin created: {result['user'].email}")
        else:
            click.echo(f"User {result['user'].email} already exists, nothing to do")

    @app.cli.command('recompute-ratings')
    def recompute_ratings():
        """Rebuild every store's rating summary from the ratings table."""
        count = rating_store.recompute_all()
        click.echo(f"Recomputed {count} stores")
