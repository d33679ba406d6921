import logging
import os

from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.models.user import ROLE_ADMIN, ROLE_TEAM_LEADER, ROLE_USER, User

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_USERS = [
    ("admin@test.com", ROLE_ADMIN),
    ("leader@test.com", ROLE_TEAM_LEADER),
    ("agent@test.com", ROLE_USER),
]


def ensure_default_dev_users(db: Session) -> None:
    """
    Create one account per role for local development if they do not exist.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST"):
        return

    created = False
    for email, role in DEFAULT_DEV_USERS:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            continue

        user = User(
            email=email,
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            is_active=True,
            role=role,
        )
        db.add(user)
        created = True

    if created:
        db.commit()
        logger.info("Seeded default development users")
