from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.auth.identity import Identity
from app.core.errors import NotFoundError, UnauthorizedError
from app.models.job_entry import JobEntry
from app.schemas.job_entry import JobEntryCreate, JobEntryUpdate

logger = logging.getLogger(__name__)

# employmentType value meaning "no filter"
ALL_EMPLOYMENT_TYPES = "All"

UPDATABLE_FIELDS = (
    "title",
    "company",
    "location",
    "description",
    "employment_type",
    "apply_link",
)


def _owner_id(identity: Identity) -> int:
    if not identity.is_authenticated or identity.user_id is None:
        raise UnauthorizedError()
    try:
        return int(identity.user_id)
    except ValueError:
        raise UnauthorizedError()


def ensure_owner(job: JobEntry, identity: Identity) -> None:
    """Ownership policy: only the recorded poster may mutate the entry."""
    if not identity.owns(job.posted_by):
        logger.warning(
            "Ownership check failed: job_id=%s posted_by=%s identity=%s",
            job.id,
            job.posted_by,
            identity.to_debug_dict(),
        )
        raise UnauthorizedError()


def get_job_entry(db: Session, job_id: int) -> JobEntry:
    job = db.query(JobEntry).filter(JobEntry.id == job_id).first()
    if not job:
        raise NotFoundError("Job not found")
    return job


def list_job_entries(db: Session, employment_type: str | None = None) -> list[JobEntry]:
    qry = db.query(JobEntry)
    if employment_type and employment_type != ALL_EMPLOYMENT_TYPES:
        qry = qry.filter(JobEntry.employment_type == employment_type)
    return qry.order_by(JobEntry.id).all()


def list_jobs_owned_by(db: Session, user_id: str | int) -> list[JobEntry]:
    return (
        db.query(JobEntry)
        .filter(JobEntry.posted_by == int(user_id))
        .order_by(JobEntry.id)
        .all()
    )


def create_job_entry(db: Session, identity: Identity, payload: JobEntryCreate) -> JobEntry:
    data = payload.model_dump()
    if data.get("posted_date") is None:
        data["posted_date"] = datetime.now(timezone.utc)

    job = JobEntry(**data)
    job.posted_by = _owner_id(identity)  # never trust a request-supplied owner

    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info("Job entry created: id=%s posted_by=%s", job.id, job.posted_by)
    return job


def update_job_entry(
    db: Session,
    job_id: int,
    identity: Identity,
    payload: JobEntryUpdate,
    *,
    require_owner: bool = False,
) -> JobEntry:
    """
    Apply the allow-listed fields present in ``payload``.

    Ownership is only enforced when ``require_owner`` is set.
    """
    job = get_job_entry(db, job_id)
    if require_owner:
        ensure_owner(job, identity)

    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        if k in UPDATABLE_FIELDS:
            setattr(job, k, v)

    db.commit()
    db.refresh(job)
    return job


def delete_job_entry(db: Session, job_id: int, identity: Identity) -> None:
    job = get_job_entry(db, job_id)
    ensure_owner(job, identity)

    db.delete(job)
    db.commit()
    logger.info("Job entry deleted: id=%s by user_id=%s", job_id, identity.user_id)
