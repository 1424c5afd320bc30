import json
import logging
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from app.models.system import Setting

logger = logging.getLogger(__name__)

DEFAULT_ENROLLMENT_TRACKS = [
    "L1 Informatique",
    "L2 Informatique",
    "L3 Informatique",
    "M1 Informatique",
    "M2 Informatique",
    "Autre",
]

DEFAULT_SETTINGS = {
    "membership_open": "true",
    "current_year": "2024-2025",
    "enrollment_tracks": json.dumps(DEFAULT_ENROLLMENT_TRACKS, ensure_ascii=False),
}


def _decode(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return raw


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def get_all_settings(db: Session) -> Dict[str, Any]:
    """All settings, JSON values decoded."""
    return {s.key: _decode(s.value) for s in db.query(Setting).all()}


def get_setting(db: Session, key: str, default: Any = None) -> Any:
    setting = db.query(Setting).filter(Setting.key == key).first()
    if setting is None:
        return default
    return _decode(setting.value)


def update_settings(db: Session, values: Dict[str, Any]) -> None:
    """Insert or replace each key."""
    for key, value in values.items():
        setting = db.query(Setting).filter(Setting.key == key).first()
        if setting:
            setting.value = _encode(value)
        else:
            db.add(Setting(key=key, value=_encode(value)))
    db.commit()
    logger.info(f"Settings updated: {', '.join(sorted(values))}")


def seed_default_settings(db: Session) -> List[str]:
    """Create missing default settings. Returns the keys that were added."""
    added = []
    for key, value in DEFAULT_SETTINGS.items():
        if db.query(Setting).filter(Setting.key == key).first() is None:
            db.add(Setting(key=key, value=value))
            added.append(key)
    db.commit()
    return added


def is_membership_open(db: Session) -> bool:
    value = get_setting(db, "membership_open", True)
    return value not in (False, "false", "0", 0)


def get_enrollment_tracks(db: Session) -> List[str]:
    tracks = get_setting(db, "enrollment_tracks")
    if isinstance(tracks, list) and tracks:
        return [str(t) for t in tracks]
    return list(DEFAULT_ENROLLMENT_TRACKS)


def get_public_config(db: Session) -> Dict[str, Any]:
    """Configuration exposed to the application form."""
    return {
        "membership_open": is_membership_open(db),
        "current_year": str(get_setting(db, "current_year", DEFAULT_SETTINGS["current_year"])),
        "enrollment_tracks": get_enrollment_tracks(db),
    }
