# compras/cli.py
import click
from flask import current_app
from werkzeug.security import generate_password_hash

from .backend import Session, get_backend
from .extensions import db
from .model import User
from .services.dashboard import ReviewDashboard

@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password))
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")

@click.command("export-purchases")
@click.option("--output", required=True, type=click.Path(dir_okay=False, writable=True))
def export_purchases(output):
    """Write every purchase to an .xlsx file, same layout as the admin download."""
    cfg = current_app.config
    # the CLI acts as an already-authenticated operator
    backend = get_backend(Session(user_id=0, email="cli"))
    with ReviewDashboard(backend, table=cfg["PURCHASES_TABLE"], tz=cfg["TIMEZONE"]) as dash:
        export = dash.export()
    with open(output, "wb") as fh:
        fh.write(export.content)
    click.echo(f"{dash.total_count} purchases exported to {output}")

def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(export_purchases)
