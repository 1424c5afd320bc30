from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from app.db.base import get_db
from app.api.errors import to_http_exception
from app.core.audit import write_audit_log
from app.core.dependencies import require_admin
from app.core.exceptions import MembershipError
from app.schemas.member import (
    AdminStatsResponse,
    BatchStatusUpdate,
    HistoryEntryResponse,
    ImportRequest,
    ImportResponse,
    MemberListResponse,
    MemberResponse,
    MemberUpdate,
    SettingsResponse,
    SettingsUpdate,
)
from app.services.csv_import import import_members
from app.services.export import export_members_csv
from app.services.history import get_member_history
from app.services.member import (
    batch_update_status,
    delete_member,
    get_bureau,
    get_member,
    get_member_stats,
    get_recent_applications,
    get_track_distribution,
    list_members,
    update_member,
)
from app.services.settings import get_all_settings, update_settings
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/members", response_model=MemberListResponse)
def get_members(
    status: Optional[str] = None,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """All members (optionally filtered by status) with counters."""
    try:
        members = list_members(db, status)
    except MembershipError as e:
        raise to_http_exception(e)
    return {"members": members, "stats": get_member_stats(db)}


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Dashboard counters, track distribution, recent applications and bureau."""
    return {
        "stats": get_member_stats(db),
        "track_distribution": get_track_distribution(db),
        "recent_applications": get_recent_applications(db),
        "bureau": get_bureau(db),
    }


@router.get("/members/{member_id}", response_model=MemberResponse)
def read_member(
    member_id: int,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        return get_member(db, member_id)
    except MembershipError as e:
        raise to_http_exception(e)


@router.put("/members/{member_id}", response_model=MemberResponse)
def edit_member(
    member_id: int,
    member_update: MemberUpdate,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Edit a member; a status change goes through the transition rules."""
    patch = member_update.model_dump(exclude_unset=True)
    try:
        member = update_member(db, member_id, patch, changed_by=actor)
    except MembershipError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Update of member {member_id} failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update member")
    if "status" in patch:
        write_audit_log(actor, "member_status", f"member={member_id} status={member.status.value}")
    return member


@router.get("/members/{member_id}/history", response_model=List[HistoryEntryResponse])
def member_history(
    member_id: int,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Status transitions of one member, oldest first."""
    try:
        get_member(db, member_id)
    except MembershipError as e:
        raise to_http_exception(e)
    return get_member_history(db, member_id)


@router.delete("/members/{member_id}")
def remove_member(
    member_id: int,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    try:
        delete_member(db, member_id)
    except MembershipError as e:
        raise to_http_exception(e)
    write_audit_log(actor, "member_delete", f"member={member_id}")
    return {"success": True, "message": "Member deleted successfully"}


@router.post("/members/batch")
def batch_update(
    batch: BatchStatusUpdate,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Set several members to active, rejected or expired."""
    try:
        outcome = batch_update_status(db, batch.member_ids, batch.status, batch.reason, changed_by=actor)
    except MembershipError as e:
        raise to_http_exception(e)
    write_audit_log(actor, "member_batch", f"status={batch.status} updated={outcome['updated']}")
    return {
        "success": True,
        "message": f"{outcome['updated']} member(s) updated successfully",
        **outcome,
    }


@router.get("/export")
def export_members(
    status: Optional[str] = None,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Download the roster as CSV."""
    try:
        content, filename = export_members_csv(db, status)
    except MembershipError as e:
        raise to_http_exception(e)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import", response_model=ImportResponse)
def import_csv(
    request: ImportRequest,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Merge a CSV roster into the member table."""
    try:
        result = import_members(db, request.csv, changed_by=actor)
    except MembershipError as e:
        raise to_http_exception(e)
    write_audit_log(
        actor,
        "member_import",
        f"imported={result.imported} updated={result.updated} skipped={result.skipped}",
    )
    stats = result.to_dict()
    return {"success": True, "errors": stats.pop("errors"), "stats": stats}


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get all settings (JSON values decoded)."""
    return {"settings": get_all_settings(db)}


@router.put("/settings")
def put_settings(
    settings_update: SettingsUpdate,
    actor: str = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Insert or replace settings."""
    update_settings(db, settings_update.settings)
    write_audit_log(actor, "settings_update", ", ".join(sorted(settings_update.settings)))
    return {"success": True, "message": "Settings updated successfully"}
