import click
from flask.cli import with_appcontext

from ..services.auth_service import AuthService
from ..services.settings_service import SettingsService
from ..utils.errors import AppError


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.password_option()
@with_appcontext
def create_admin_command(email, name, password):
    """Create the first admin account."""
    try:
        user = AuthService.create_admin(email, password, name)
    except AppError as e:
        raise click.ClickException(e.message)
    click.echo(f"Admin {user['email']} created")


@click.command("show-settings")
@with_appcontext
def show_settings_command():
    """Print the effective store settings."""
    for key, value in sorted(SettingsService.get_all().items()):
        click.echo(f"{key} = {value}")


def register_cli(app):
    app.cli.add_command(create_admin_command)
    app.cli.add_command(show_settings_command)
