"""Return-request lifecycle.

Clients file requests to have drums collected; administrators move them
through the state machine:

    Pending  → Approved | Rejected
    Approved → Completed
    Completed, Rejected → (terminal)

Creation validates ownership of the whole drum selection up front and writes
nothing unless every code belongs to the requesting company. Priority is
computed once, at creation: High when any selected drum is overdue.

Status changes are applied with a conditional UPDATE on the status that was
read, so two administrators racing on the same request cannot overwrite each
other; the loser gets a retryable ConflictError.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from drum_returns.auth.permissions import Principal, ensure_administrative, ensure_client
from drum_returns.middleware.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from drum_returns.models.company import Company
from drum_returns.models.drum import Drum
from drum_returns.models.return_request import RequestPriority, RequestStatus, ReturnRequest
from drum_returns.services.drum_status import DrumCategory
from drum_returns.services.drums import enrich_drums
from drum_returns.utils.activity import touch_company_activity

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.REJECTED},
    RequestStatus.APPROVED: {RequestStatus.COMPLETED},
    RequestStatus.COMPLETED: set(),
    RequestStatus.REJECTED: set(),
}

REQUIRED_FIELDS = (
    "street",
    "postal_code",
    "city",
    "contact_email",
    "loading_hours",
    "collection_date",
    "selected_drum_codes",
)

OPTIONAL_FIELDS = ("available_equipment", "notes")


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _parse_collection_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValidationError("Collection date must be an ISO date", field="collection_date")


def _normalize_codes(raw) -> list[str]:
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Selected drums must be a list of drum codes", field="selected_drum_codes")

    codes: list[str] = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError("Drum codes must be non-empty strings", field="selected_drum_codes")
        code = item.strip()
        if code in codes:
            raise ValidationError(
                f"Drum {code} selected more than once",
                field="selected_drum_codes",
                drum_codes=[code],
            )
        codes.append(code)
    return codes


def validate_request_fields(fields: dict) -> dict:
    """Check required fields and return a cleaned copy. Raises ValidationError."""
    for name in REQUIRED_FIELDS:
        if _is_missing(fields.get(name)):
            raise ValidationError(f"Field '{name}' is required", field=name)

    cleaned = {name: _clean(fields.get(name)) for name in REQUIRED_FIELDS + OPTIONAL_FIELDS}
    cleaned["collection_date"] = _parse_collection_date(fields["collection_date"])
    cleaned["selected_drum_codes"] = _normalize_codes(fields["selected_drum_codes"])
    for name in OPTIONAL_FIELDS:
        if _is_missing(cleaned[name]):
            cleaned[name] = None
    return cleaned


async def create_return_request(
    db: AsyncSession,
    principal: Principal,
    fields: dict,
    now: date | datetime | None = None,
) -> ReturnRequest:
    """File a new return request on behalf of the principal's company.

    Raises:
        AuthorizationError: principal is not a client.
        ValidationError:    missing field, empty selection, or any selected
                            drum not owned by the company.
    """
    ensure_client(principal)
    data = validate_request_fields(fields)
    codes: list[str] = data["selected_drum_codes"]
    tax_id = principal.company_tax_id

    # ── Ownership: the whole selection or nothing ──────────────
    owned = list(
        (
            await db.execute(
                select(Drum).where(Drum.company_tax_id == tax_id, Drum.code.in_(codes))
            )
        ).scalars().all()
    )
    owned_codes = {d.code for d in owned}
    foreign = [c for c in codes if c not in owned_codes]
    if foreign:
        raise ValidationError(
            "Selected drums do not belong to your company",
            field="selected_drum_codes",
            drum_codes=foreign,
        )

    company = await db.get(Company, tax_id)
    if company is None:
        raise NotFoundError("Company", tax_id)

    # ── Priority from live classification ──────────────────────
    enriched = await enrich_drums(db, owned, now)
    has_overdue = any(e.classification.category == DrumCategory.OVERDUE for e in enriched)
    priority = RequestPriority.HIGH if has_overdue else RequestPriority.NORMAL

    request = ReturnRequest(
        company_tax_id=tax_id,
        company_name=company.name,
        street=data["street"],
        postal_code=data["postal_code"],
        city=data["city"],
        contact_email=data["contact_email"],
        loading_hours=data["loading_hours"],
        available_equipment=data["available_equipment"],
        notes=data["notes"],
        collection_date=data["collection_date"],
        selected_drum_codes=codes,
        status=RequestStatus.PENDING.value,
        priority=priority.value,
    )
    db.add(request)
    await db.flush()
    await touch_company_activity(db, tax_id)

    logger.info(
        "Return request %d created by %s for %d drum(s), priority %s",
        request.id, tax_id, len(codes), priority.value,
    )
    return request


async def update_return_request_status(
    db: AsyncSession,
    principal: Principal,
    request_id: int,
    new_status: str,
) -> ReturnRequest:
    """Move a request to `new_status`.

    Raises:
        AuthorizationError:     principal is not admin/supervisor.
        NotFoundError:          no such request.
        ValidationError:        unknown status value.
        InvalidTransitionError: transition not allowed from the current status.
        ConflictError:          the status changed concurrently; retry.
    """
    ensure_administrative(principal)

    request = await db.get(ReturnRequest, request_id)
    if request is None:
        raise NotFoundError("Return request", request_id)

    try:
        target = RequestStatus(new_status)
    except ValueError:
        raise ValidationError(
            f"Unknown status '{new_status}'",
            field="status",
            allowed=[s.value for s in RequestStatus],
        )

    current = RequestStatus(request.status)
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value, request_id=request_id)

    result = await db.execute(
        update(ReturnRequest)
        .where(
            ReturnRequest.id == request_id,
            ReturnRequest.status == current.value,
        )
        .values(status=target.value, updated_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(
            "Return request was modified concurrently",
            request_id=request_id,
        )

    await db.refresh(request)
    await touch_company_activity(db, request.company_tax_id)

    logger.info(
        "Return request %d: %s -> %s by %s",
        request_id, current.value, target.value, principal.subject,
    )
    return request


async def list_return_requests(
    db: AsyncSession,
    principal: Principal,
    company_tax_id: str | None = None,
    status: str | None = None,
) -> list[ReturnRequest]:
    """Requests visible to the principal, most recent first.

    A client's own company always wins over any company filter it sends.
    """
    query = select(ReturnRequest)
    if principal.is_client:
        query = query.where(ReturnRequest.company_tax_id == principal.company_tax_id)
    elif company_tax_id:
        query = query.where(ReturnRequest.company_tax_id == company_tax_id)

    if status:
        try:
            query = query.where(ReturnRequest.status == RequestStatus(status).value)
        except ValueError:
            raise ValidationError(f"Unknown status '{status}'", field="status")

    query = query.order_by(ReturnRequest.created_at.desc(), ReturnRequest.id.desc())
    return list((await db.execute(query)).scalars().all())


async def get_return_request(
    db: AsyncSession,
    principal: Principal,
    request_id: int,
) -> ReturnRequest:
    request = await db.get(ReturnRequest, request_id)
    if request is None or not principal.can_access_company(request.company_tax_id):
        raise NotFoundError("Return request", request_id)
    return request
