"""CLI tools for portal administration."""

import click

from grievance_api.core.errors import PortalError
from grievance_api.core.security import create_session_token
from grievance_api.core.unit_of_work import UnitOfWork
from grievance_api.db.enums import Role
from grievance_api.db.session import SessionLocal
from grievance_api.services import directory_service


@click.group()
def cli():
    """Grievance portal CLI tools."""
    pass


@cli.command()
def seed_departments():
    """
    Create the default departments and their categories (idempotent).

    Example:
        python -m grievance_api.cli seed-departments
    """
    db = SessionLocal()
    try:
        with UnitOfWork(db):
            created = directory_service.seed_departments(db)
        click.echo(f"✓ Seeded departments ({created} new rows)")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email address")
@click.option("--name", "full_name", required=True, help="Full name")
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.STUDENT.value,
    show_default=True,
)
@click.option("--department", default=None, help="Department name (officer roles)")
def create_user(email: str, full_name: str, role: str, department: str | None):
    """
    Create a user, optionally with a role.

    Example:
        python -m grievance_api.cli create-user --email "hod@uni.edu" --name "Hostel HOD" \\
            --role department_head --department Hostel
    """
    db = SessionLocal()
    try:
        department_id = None
        if department:
            match = [d for d in directory_service.list_departments(db) if d.name == department]
            if not match:
                click.echo(f"❌ Unknown department '{department}'")
                return
            department_id = match[0].id

        with UnitOfWork(db):
            user = directory_service.create_user(
                db, email, full_name, role=Role(role), department_id=department_id
            )
        click.echo(f"✓ Created user {user.email} ({role})")
        click.echo(f"  ID: {user.id}")
    except PortalError as e:
        click.echo(f"❌ {e.message}")
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User to issue a session token for")
def issue_token(email: str):
    """
    Print a session token for a user (for API clients and local testing).

    Example:
        python -m grievance_api.cli issue-token --email "student@uni.edu"
    """
    db = SessionLocal()
    try:
        user = directory_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return
        if not user.is_active:
            click.echo(f"❌ User is deactivated: {email}")
            return

        roles = directory_service.role_payload(directory_service.get_role_assignments(db, user.id))
        click.echo(create_session_token(user.id, user.email, roles, user.token_version))
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="User email to revoke sessions for")
def revoke_sessions(email: str):
    """
    Revoke all sessions for a user by bumping their token_version.

    Example:
        python -m grievance_api.cli revoke-sessions --email "user@uni.edu"
    """
    db = SessionLocal()
    try:
        user = directory_service.get_user_by_email(db, email)
        if not user:
            click.echo(f"❌ User not found: {email}")
            return

        with UnitOfWork(db):
            version = directory_service.revoke_sessions(db, user)
        click.echo(f"✓ Revoked all sessions for {email}")
        click.echo(f"  New token_version: {version}")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
