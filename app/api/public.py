from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.base import get_db
from app.api.errors import to_http_exception
from app.core.exceptions import MembershipError
from app.schemas.member import ApplicationCreate, PublicConfig
from app.services.member import get_member_stats, submit_application
from app.services.settings import get_public_config
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["public"])


@router.post("/apply")
def apply(application: ApplicationCreate, db: Session = Depends(get_db)):
    """Submit a membership application."""
    try:
        member = submit_application(db, application.model_dump())
    except MembershipError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Application failed for {application.email}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Une erreur est survenue. Veuillez réessayer.")
    return {
        "success": True,
        "message": (
            "Votre demande d'adhésion a bien été enregistrée. Vous recevrez un email "
            "de confirmation une fois votre demande validée."
        ),
        "member_id": member.id,
    }


@router.get("/config")
def get_config(db: Session = Depends(get_db)):
    """Configuration used by the application form."""
    return {"config": PublicConfig(**get_public_config(db))}


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    """Public membership counters."""
    stats = get_member_stats(db)
    return {
        "stats": {
            "active_members": stats["active"],
            "pending_applications": stats["pending"],
        }
    }
