from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.core.base import Base


class JobEntry(Base):
    __tablename__ = "job_entries"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Examples: Full-time, Part-time, Contract, Internship
    employment_type = Column(String(50), nullable=True, index=True)
    posted_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    apply_link = Column(String(500), nullable=True)

    # ownership; set once at creation from the acting identity
    posted_by = Column(
        Integer,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="job_entries")
