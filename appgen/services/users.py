import logging
import time
import uuid

from sqlalchemy.orm import Session

from appgen.models.user import User

logger = logging.getLogger(__name__)


def new_user_id() -> str:
    return f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def create_user(db: Session, email: str, name: str, user_id: str | None = None) -> User:
    user = User(id=user_id or new_user_id(), email=email, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Created user: {user.email}")
    return user


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email).first()
