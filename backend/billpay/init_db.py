"""Database initialization script with seed data."""

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from billpay.config import settings
from billpay.database import Base, create_db_engine, create_session_factory
from billpay.models import User
from billpay.services.auth import AuthFailure, IdentityService
from billpay.services.repositories import AccountRepository, SqlUserRepository

DEMO_EMAIL = "demo@billpay.app"
DEMO_PASSWORD = "Demo1234"  # Meets the signup password rules


def create_tables(engine: Engine):
    """Create all database tables."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")


def seed_data(db: Session) -> User:
    """Seed the database with a demo user and their default account."""
    print("\nSeeding database with sample data...")

    identity = IdentityService(SqlUserRepository(db), AccountRepository(db))
    result = identity.signup(
        email=DEMO_EMAIL,
        first_name="Demo",
        last_name="User",
        password=DEMO_PASSWORD,
        phone="+2348000000000",
    )
    if isinstance(result, AuthFailure):
        raise RuntimeError(f"Could not create demo user: {result}")
    user = result.user

    print("Seed data created successfully!")
    print(f"  User: {user.email}")
    print(f"  Accounts: {len(AccountRepository(db).find_by_user(user.id))}")
    return user


def init_db(database_url: str | None = None):
    """Initialize database with tables and seed data."""
    print("Initializing database...")

    engine = create_db_engine(database_url or settings.database_url)
    create_tables(engine)

    db = create_session_factory(engine)()
    try:
        # Check if data already exists
        existing_users = db.query(User).count()
        if existing_users > 0:
            print(f"\nDatabase already has {existing_users} users. Skipping seed data.")
            return

        seed_data(db)
        print("\nDatabase initialization complete!")

    except Exception as e:
        print(f"\nError during database initialization: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    init_db()
