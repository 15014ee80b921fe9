"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-operator: Create a till operator account
"""

import click
from pos.database import db_session, create_tables
from pos.exceptions import BusinessLogicError
from pos.services.auth_service import register_operator


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create the product, category, transactions, settings and operator tables."""
        create_tables()
        click.echo(click.style('✅ Tabel database siap.', fg='green'))

    @app.cli.command('create-operator')
    @click.option('--email', prompt=True, help='Operator email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Operator password')
    @click.option('--full-name', default='', help='Display name')
    def create_operator(email, password, full_name):
        """Create a new operator who can sign in to the till."""
        try:
            operator = register_operator(db_session, email, password, full_name)
        except BusinessLogicError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('\n✅ Operator berhasil dibuat!', fg='green', bold=True))
        click.echo(f'   Email: {operator.email}')
        click.echo(f'   ID: {operator.id}')
