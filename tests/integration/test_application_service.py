"""Integration tests for the application ledger and its status machine."""

import uuid
from datetime import timedelta

import pytest

from nightshift.core.clock import utcnow
from nightshift.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from nightshift.models import Application
from nightshift.schemas.application import ApplicationStatus
from nightshift.services import application_service, job_service, user_service
from tests.conftest import insert_job, make_identity

pytestmark = pytest.mark.integration


# ── helpers ──────────────────────────────────────────────────────────────


async def _posted_job(db, owner, now, days_ahead: int = 1):
    return await insert_job(db, owner.id, date=now.date() + timedelta(days=days_ahead))


# ── apply ────────────────────────────────────────────────────────────────


async def test_apply_creates_applied_application(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)

    application = await application_service.apply(db_session, job.id, worker.id, now=now)

    assert application.status == ApplicationStatus.APPLIED
    assert application.job_id == job.id
    assert application.applicant_id == worker.id
    assert application.applied_at is not None
    assert application.job.id == job.id


async def test_apply_twice_conflicts(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    await application_service.apply(db_session, job.id, worker.id, now=now)

    with pytest.raises(ConflictError) as exc_info:
        await application_service.apply(db_session, job.id, worker.id, now=now)
    assert "duplicate" in exc_info.value.detail


async def test_apply_to_own_job_conflicts(db_session, owner, now):
    job = await _posted_job(db_session, owner, now)
    with pytest.raises(ConflictError) as exc_info:
        await application_service.apply(db_session, job.id, owner.id, now=now)
    assert "self-apply" in exc_info.value.detail


async def test_apply_to_own_expired_job_still_self_apply(db_session, owner, now):
    """Self-apply is refused regardless of job activity."""
    job = await _posted_job(db_session, owner, now, days_ahead=-3)
    with pytest.raises(ConflictError):
        await application_service.apply(db_session, job.id, owner.id, now=now)


async def test_apply_to_own_deleted_job_still_self_apply(db_session, owner, now):
    job = await _posted_job(db_session, owner, now)
    await job_service.soft_delete_job(db_session, job.id, owner.id)
    with pytest.raises(ConflictError):
        await application_service.apply(db_session, job.id, owner.id, now=now)


async def test_apply_to_missing_job(db_session, worker, now):
    with pytest.raises(NotFoundError):
        await application_service.apply(db_session, uuid.uuid4(), worker.id, now=now)


async def test_apply_to_expired_job_not_found(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now, days_ahead=-1)
    with pytest.raises(NotFoundError):
        await application_service.apply(db_session, job.id, worker.id, now=now)


async def test_apply_to_deleted_job_not_found(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    await job_service.soft_delete_job(db_session, job.id, owner.id)
    with pytest.raises(NotFoundError):
        await application_service.apply(db_session, job.id, worker.id, now=now)


async def test_reapply_after_withdraw(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    first = await application_service.apply(db_session, job.id, worker.id, now=now)
    await application_service.withdraw(db_session, first.id, worker.id, now=now)

    second = await application_service.apply(db_session, job.id, worker.id, now=now)

    assert second.id != first.id
    assert second.status == ApplicationStatus.APPLIED


# ── set_status ───────────────────────────────────────────────────────────


async def test_owner_connects(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)

    updated = await application_service.set_status(
        db_session, application.id, owner.id, ApplicationStatus.CONNECTED, now=now
    )
    assert updated.status == ApplicationStatus.CONNECTED


async def test_owner_declines(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)

    updated = await application_service.set_status(
        db_session, application.id, owner.id, ApplicationStatus.DECLINED, now=now
    )
    assert updated.status == ApplicationStatus.DECLINED


async def test_connected_is_terminal_for_owner(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    await application_service.set_status(
        db_session, application.id, owner.id, ApplicationStatus.CONNECTED, now=now
    )

    with pytest.raises(ConflictError):
        await application_service.set_status(
            db_session, application.id, owner.id, ApplicationStatus.DECLINED, now=now
        )
    with pytest.raises(ConflictError):
        await application_service.set_status(
            db_session, application.id, owner.id, ApplicationStatus.CONNECTED, now=now
        )


async def test_other_owner_cannot_connect(db_session, owner, worker, now):
    """An owner of a different job has no say over this application."""
    other_owner = await user_service.sync_identity(db_session, make_identity())
    await _posted_job(db_session, other_owner, now)
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)

    with pytest.raises(AuthorizationError):
        await application_service.set_status(
            db_session, application.id, other_owner.id, ApplicationStatus.CONNECTED, now=now
        )


async def test_applicant_cannot_connect_self(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    with pytest.raises(AuthorizationError):
        await application_service.set_status(
            db_session, application.id, worker.id, ApplicationStatus.CONNECTED, now=now
        )


async def test_owner_cannot_withdraw(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    with pytest.raises(AuthorizationError):
        await application_service.withdraw(db_session, application.id, owner.id, now=now)


async def test_cannot_move_back_to_applied(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    with pytest.raises(ValidationError):
        await application_service.set_status(
            db_session, application.id, owner.id, ApplicationStatus.APPLIED, now=now
        )


async def test_set_status_missing_application(db_session, owner, now):
    with pytest.raises(NotFoundError):
        await application_service.set_status(
            db_session, uuid.uuid4(), owner.id, ApplicationStatus.CONNECTED, now=now
        )


@pytest.mark.parametrize("prior", [None, ApplicationStatus.CONNECTED, ApplicationStatus.DECLINED])
async def test_withdraw_from_any_open_status(db_session, owner, worker, now, prior):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    if prior:
        await application_service.set_status(db_session, application.id, owner.id, prior, now=now)

    withdrawn = await application_service.withdraw(db_session, application.id, worker.id, now=now)

    assert withdrawn.status == ApplicationStatus.WITHDRAWN


async def test_withdraw_twice_conflicts(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    await application_service.withdraw(db_session, application.id, worker.id, now=now)
    with pytest.raises(ConflictError):
        await application_service.withdraw(db_session, application.id, worker.id, now=now)


async def test_withdraw_after_job_ended_conflicts(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)

    with pytest.raises(ConflictError):
        await application_service.withdraw(
            db_session, application.id, worker.id, now=job.ends_at + timedelta(minutes=1)
        )


async def test_withdraw_from_deleted_job_allowed_before_end(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    await job_service.soft_delete_job(db_session, job.id, owner.id)

    withdrawn = await application_service.withdraw(db_session, application.id, worker.id, now=now)
    assert withdrawn.status == ApplicationStatus.WITHDRAWN


async def test_withdrawn_excluded_from_listings(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    application = await application_service.apply(db_session, job.id, worker.id, now=now)
    await application_service.withdraw(db_session, application.id, worker.id, now=now)

    assert await application_service.list_for_job(db_session, job.id) == []
    assert await application_service.list_for_applicant(db_session, worker.id) == []

    history = await application_service.list_withdrawn_for_applicant(db_session, worker.id)
    assert [a.id for a in history] == [application.id]
    everything = await application_service.list_for_applicant(
        db_session, worker.id, include_withdrawn=True
    )
    assert [a.id for a in everything] == [application.id]


# ── listings ─────────────────────────────────────────────────────────────


async def test_list_for_applicant_newest_first(db_session, owner, worker, now):
    jobs = [await _posted_job(db_session, owner, now, days_ahead=d) for d in (1, 2, 3)]
    applied = [
        await application_service.apply(db_session, job.id, worker.id, now=now) for job in jobs
    ]

    listed = await application_service.list_for_applicant(db_session, worker.id)

    assert [a.id for a in listed] == [a.id for a in reversed(applied)]
    assert all(a.job is not None for a in listed)


async def test_list_for_job_joins_applicant(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    await application_service.apply(db_session, job.id, worker.id, now=now)

    listed = await application_service.list_for_job(db_session, job.id)

    assert len(listed) == 1
    assert listed[0].applicant.name == worker.name
    assert listed[0].applicant.email == worker.email


async def test_list_applicants_for_job_requires_owner(db_session, owner, worker, now):
    job = await _posted_job(db_session, owner, now)
    await application_service.apply(db_session, job.id, worker.id, now=now)

    assert len(await application_service.list_applicants_for_job(db_session, job.id, owner.id)) == 1
    with pytest.raises(AuthorizationError):
        await application_service.list_applicants_for_job(db_session, job.id, worker.id)


async def test_open_pair_index_is_partial_and_unique(db_session):
    """The store-level guard only covers applications that are not withdrawn."""
    index = next(i for i in Application.__table__.indexes if i.name == "uq_applications_open_pair")
    assert index.unique is True
    assert [c.name for c in index.columns] == ["job_id", "applicant_id"]
    assert "withdrawn" in str(index.dialect_options["postgresql"]["where"])
    assert "withdrawn" in str(index.dialect_options["sqlite"]["where"])


async def test_concurrent_duplicate_apply_conflicts(db_session, owner, worker, now, monkeypatch):
    """A second open application that slips past the lookup is stopped by the unique index."""
    job = await _posted_job(db_session, owner, now)
    db_session.add(
        Application(
            job_id=job.id,
            applicant_id=worker.id,
            applied_at=utcnow(),
            status=ApplicationStatus.APPLIED,
        )
    )
    await db_session.flush()

    async def _no_open_application(db, job_id, applicant_id):
        return None

    monkeypatch.setattr(application_service, "find_open_application", _no_open_application)

    with pytest.raises(ConflictError) as exc_info:
        await application_service.apply(db_session, job.id, worker.id, now=now)
    assert "duplicate" in exc_info.value.detail

    # The session stays usable and holds only the first application.
    assert len(await application_service.list_for_job(db_session, job.id)) == 1
