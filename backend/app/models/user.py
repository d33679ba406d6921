from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base

ROLE_USER = "user"
ROLE_TEAM_LEADER = "team_leader"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_TEAM_LEADER, ROLE_ADMIN)
PRIVILEGED_ROLES = frozenset({ROLE_TEAM_LEADER, ROLE_ADMIN})


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=True)
    role = Column(String(32), nullable=False, default=ROLE_USER, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    leads = relationship("Lead", back_populates="owner")

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def can_see_all(self) -> bool:
        return self.role in PRIVILEGED_ROLES
