# app/models/user.py
from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.core.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Unique indexes close the check-then-insert race in registration.
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # NULL for federated-only accounts
    password_hash = Column(String(255), nullable=True)
    # Google `sub` claim; NULL for local-only accounts
    google_id = Column(String(255), unique=True, index=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # user → posted job entries
    job_entries = relationship("JobEntry", back_populates="owner")
