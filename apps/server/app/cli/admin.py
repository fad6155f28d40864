"""Admin CLI commands for managing admin accounts."""

import typer

from app.db import session as db_session
from app.models.user import UserType
from app.schemas.auth import PASSWORD_MIN_LENGTH
from app.services.profiles import create_admin_profile
from app.services.users import UserEmailAlreadyExistsError, create_account

app = typer.Typer(help="Manage QueenB admin accounts.")


@app.callback()
def main() -> None:
    """Admin account management. Admins cannot register through the API."""


@app.command("create-admin")
def create_admin(
    email: str,
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    first_name: str = typer.Option(..., "--first-name", prompt=True),
    last_name: str = typer.Option(..., "--last-name", prompt=True),
):
    """Create a verified admin account with its admin profile."""
    if len(password) < PASSWORD_MIN_LENGTH:
        typer.echo(f"Error: Password must be at least {PASSWORD_MIN_LENGTH} characters.")
        raise typer.Exit(code=1)

    try:
        with db_session.session_scope() as db:
            user = create_account(
                db,
                email=email,
                password=password,
                user_type=UserType.ADMIN,
                is_email_verified=True,
            )
            create_admin_profile(db, user, first_name=first_name, last_name=last_name)
            created_email = user.email
    except UserEmailAlreadyExistsError as exc:
        typer.echo(f"Error: An account with email {exc.email} already exists.")
        raise typer.Exit(code=1)

    typer.echo(f"Admin account created for {created_email}")


if __name__ == "__main__":
    app()
