import logging

from appgen.core.config import settings
from appgen.db.base import Base
from appgen.db.session import SessionLocal, engine
from appgen.models import Job, User  # noqa: F401  (registers tables)
from appgen.services.users import create_user, get_user_by_email

logger = logging.getLogger(__name__)

SEED_USERS = [
    {"email": "demo@example.com", "name": "Demo User", "user_id": settings.demo_user_id},
    {"email": "test@example.com", "name": "Test User"},
]


def init_db() -> None:
    """Create tables and seed the demo users. Safe to call more than once."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        for seed in SEED_USERS:
            if get_user_by_email(db, seed["email"]) is None:
                create_user(db, **seed)
    finally:
        db.close()
    logger.info("Database initialized")
