from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from app.auth.identity import Identity
from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import AppError, InternalError
from app.dependencies.auth import get_current_identity
from app.dependencies.settings import get_settings
from app.schemas.job_entry import JobEntryCreate, JobEntryOut, JobEntryUpdate
from app.services.jobs import (
    create_job_entry,
    delete_job_entry,
    get_job_entry,
    list_job_entries,
    list_jobs_owned_by,
    update_job_entry,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["jobs"])


@router.post("/api/jobEntries", response_model=JobEntryOut, status_code=201)
def create_job(
    payload: JobEntryCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    try:
        return create_job_entry(db, identity, payload)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Failed to create job entry")
        raise InternalError("An error occurred while posting the job advertisement.") from exc


@router.get("/user/posts", response_model=list[JobEntryOut])
def list_my_posts(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    try:
        return list_jobs_owned_by(db, identity.user_id)
    except Exception as exc:
        logger.exception("Failed to list job entries for user_id=%s", identity.user_id)
        raise InternalError("An error occurred while fetching the user's job posts.") from exc


@router.get("/api/jobEntries", response_model=list[JobEntryOut])
def list_jobs(
    employment_type: str | None = Query(default=None, alias="employmentType"),
    db: Session = Depends(get_db),
):
    try:
        return list_job_entries(db, employment_type)
    except Exception as exc:
        logger.exception("Failed to list job entries")
        raise InternalError("An error occurred while fetching job entries.") from exc


@router.get("/api/jobEntries/{job_id}", response_model=JobEntryOut)
def get_job(job_id: int, db: Session = Depends(get_db)):
    try:
        return get_job_entry(db, job_id)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Failed to fetch job entry id=%s", job_id)
        raise InternalError("An error occurred while fetching the job details.") from exc


@router.put("/api/jobEntries/{job_id}", response_model=JobEntryOut)
def update_job(
    job_id: int,
    payload: JobEntryUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
    settings: Settings = Depends(get_settings),
):
    try:
        return update_job_entry(
            db,
            job_id,
            identity,
            payload,
            require_owner=settings.JOB_UPDATE_REQUIRES_OWNER,
        )
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Failed to update job entry id=%s", job_id)
        raise InternalError("An error occurred while updating the job entry.") from exc


@router.delete("/api/jobEntries/{job_id}", response_class=PlainTextResponse)
def delete_job(
    job_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    try:
        delete_job_entry(db, job_id, identity)
    except AppError:
        raise
    except Exception as exc:
        logger.exception("Failed to delete job entry id=%s", job_id)
        raise InternalError("An error occurred while deleting the job entry.") from exc
    return "Job entry deleted"
