import typer

app = typer.Typer()


@app.command()
def create_admin():
    from core.helper import utc_now
    from core.security import generate_hash_password
    from models import factory_session
    from models.User import UserRole
    from repository.user import create_user, get_user_by_email

    email = typer.prompt("email")
    name = typer.prompt("name", default="Admin")
    password = typer.prompt("password", hide_input=True, confirmation_prompt=True)

    with factory_session() as db:
        if get_user_by_email(db=db, email=email):
            typer.echo(f"{email} is already registered")
            raise typer.Exit(code=1)
        create_user(
            db=db,
            email=email,
            name=name,
            password=generate_hash_password(password),
            role=UserRole.ADMIN,
            email_verified_at=utc_now(),
            is_commit=True,
        )
    typer.echo(f"admin {email} created")


@app.command()
def process_expired_auctions():
    import asyncio
    from core.auction_sweep import process_expired_auctions as sweep
    from models import factory_session

    with factory_session() as db:
        summary = asyncio.run(sweep(db=db))
    typer.echo(
        f"sold={summary['sold']} expired={summary['expired']} failed={summary['failed']}"
    )


@app.command()
def seed_sample_events():
    from seeders.initial_seeders import initial_seeders

    initial_seeders()


@app.command()
def send_test_email(email: str, name: str):
    from core.email import try_send_email
    import asyncio

    asyncio.run(try_send_email(recipient=email, name=name))


if __name__ == "__main__":
    app()
