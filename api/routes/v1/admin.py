"""
api/routes/v1/admin.py -- Admin-only reads over identities and the audit trail.

Routes:
  GET /api/v1/admin/summary      -- user counts per role + audit record count
  GET /api/v1/admin/users        -- every identity (public projection)
  GET /api/v1/admin/audit        -- most recent audit records, actor resolved
  GET /api/v1/admin/audit/{id}   -- one audit record

Every route requires the admin role. The summary view is itself an audited
"admin action".
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request

from api.models import AdminSummaryResponse, AuditRecordResponse, UserResponse
from audit.models import AuditRecord
from audit.recorder import AuditRecorder, request_origin
from audit.store import AuditStore
from auth.dependencies import require_roles
from auth.models import ADMIN, TokenClaims
from auth.store import UserStore

_require_admin = require_roles(ADMIN)

# Auth policy:
# - GET /api/v1/admin/*: requires admin (require_roles("admin"))
# Router-level dependency enforces the role; FastAPI caches it per request, so
# handlers that also take the identity do not verify the token twice.
router = APIRouter(dependencies=[Depends(_require_admin)])


@router.get("/admin/summary", response_model=AdminSummaryResponse)
def admin_summary(
    request: Request,
    background_tasks: BackgroundTasks,
    identity: TokenClaims = Depends(_require_admin),
) -> AdminSummaryResponse:
    """Return portal-wide identity and audit counts."""
    user_store: UserStore = request.app.state.user_store
    audit_store: AuditStore = request.app.state.audit_store

    by_role = user_store.count_by_role()
    summary = AdminSummaryResponse(
        total_users=sum(by_role.values()),
        users_by_role=by_role,
        audit_records=audit_store.count(),
    )

    recorder: AuditRecorder = request.app.state.audit
    background_tasks.add_task(
        recorder.record,
        "admin action",
        identity.subject_id,
        {"endpoint": "admin summary", "path": request.url.path},
        request_origin(request),
    )
    return summary


@router.get("/admin/users", response_model=list[UserResponse])
def list_users(request: Request) -> list[UserResponse]:
    """List all identities, newest first."""
    user_store: UserStore = request.app.state.user_store
    return [UserResponse.from_identity(u) for u in user_store.list_users()]


@router.get("/admin/audit", response_model=list[AuditRecordResponse])
def list_audit_records(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
    actor_id: Optional[int] = Query(default=None),
) -> list[AuditRecordResponse]:
    """Return the most recent audit records, optionally for one actor."""
    audit_store: AuditStore = request.app.state.audit_store
    if actor_id is None:
        records = audit_store.list_recent(limit=limit)
    else:
        records = audit_store.list_for_actor(actor_id, limit=limit)

    user_store: UserStore = request.app.state.user_store
    actors: dict[int, Optional[UserResponse]] = {}
    for record in records:
        if record.actor_id not in actors:
            actors[record.actor_id] = _resolve_actor(user_store, record.actor_id)
    return [_record_to_response(r, actors[r.actor_id]) for r in records]


@router.get("/admin/audit/{record_id}", response_model=AuditRecordResponse)
def get_audit_record(request: Request, record_id: int) -> AuditRecordResponse:
    audit_store: AuditStore = request.app.state.audit_store
    record = audit_store.get(record_id)
    if record is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "Audit record not found."},
        )
    user_store: UserStore = request.app.state.user_store
    return _record_to_response(record, _resolve_actor(user_store, record.actor_id))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_actor(user_store: UserStore, actor_id: int) -> Optional[UserResponse]:
    user = user_store.get_by_id(actor_id)
    return UserResponse.from_identity(user) if user is not None else None


def _record_to_response(record: AuditRecord, actor: Optional[UserResponse]) -> AuditRecordResponse:
    return AuditRecordResponse(
        id=record.id,
        action=record.action,
        actor_id=record.actor_id,
        actor=actor,
        details=record.details,
        ip=record.ip,
        timestamp=record.timestamp,
        created_at=record.created_at or "",
    )
