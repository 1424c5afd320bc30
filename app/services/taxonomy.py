"""Member status taxonomy: bureau roles, active-like set, labels and synonyms."""
import unicodedata
from typing import FrozenSet, Optional, Union

from app.models.member import MemberStatus

StatusLike = Union[MemberStatus, str, None]

BUREAU_ROLES: FrozenSet[MemberStatus] = frozenset({
    MemberStatus.PRESIDENT,
    MemberStatus.VICE_PRESIDENT,
    MemberStatus.SECRETARY,
    MemberStatus.TREASURER,
    MemberStatus.HONORARY_PRESIDENT,
})

# Bureau roles limited to a single holder; honorary president is exempt
UNIQUE_ROLES: FrozenSet[MemberStatus] = BUREAU_ROLES - {MemberStatus.HONORARY_PRESIDENT}

ACTIVE_LIKE_STATUSES: FrozenSet[MemberStatus] = BUREAU_ROLES | {MemberStatus.ACTIVE, MemberStatus.HONOR}

# Display order used by the bureau listing
BUREAU_ORDER = (
    MemberStatus.PRESIDENT,
    MemberStatus.VICE_PRESIDENT,
    MemberStatus.SECRETARY,
    MemberStatus.TREASURER,
    MemberStatus.HONORARY_PRESIDENT,
)

STATUS_LABELS = {
    MemberStatus.PENDING: "En attente",
    MemberStatus.ACTIVE: "Membre actif",
    MemberStatus.HONOR: "Membre d'honneur",
    MemberStatus.REJECTED: "Refusé",
    MemberStatus.EXPIRED: "Expiré",
    MemberStatus.PRESIDENT: "Président",
    MemberStatus.VICE_PRESIDENT: "Vice-président",
    MemberStatus.SECRETARY: "Secrétaire",
    MemberStatus.TREASURER: "Trésorier",
    MemberStatus.HONORARY_PRESIDENT: "Président d'honneur",
}

# Free-text labels seen in rosters, keyed by their folded form (see fold_text)
STATUS_SYNONYMS = {
    "en attente": MemberStatus.PENDING,
    "attente": MemberStatus.PENDING,
    "membre actif": MemberStatus.ACTIVE,
    "actif": MemberStatus.ACTIVE,
    "active": MemberStatus.ACTIVE,
    "membre": MemberStatus.ACTIVE,
    "member": MemberStatus.ACTIVE,
    "membre d'honneur": MemberStatus.HONOR,
    "honneur": MemberStatus.HONOR,
    "honorary member": MemberStatus.HONOR,
    "refuse": MemberStatus.REJECTED,
    "rejete": MemberStatus.REJECTED,
    "expire": MemberStatus.EXPIRED,
    "president": MemberStatus.PRESIDENT,
    "presidente": MemberStatus.PRESIDENT,
    "vice-president": MemberStatus.VICE_PRESIDENT,
    "vice president": MemberStatus.VICE_PRESIDENT,
    "vice-presidente": MemberStatus.VICE_PRESIDENT,
    "secretaire": MemberStatus.SECRETARY,
    "tresorier": MemberStatus.TREASURER,
    "tresoriere": MemberStatus.TREASURER,
    "president d'honneur": MemberStatus.HONORARY_PRESIDENT,
    "presidente d'honneur": MemberStatus.HONORARY_PRESIDENT,
    "honorary president": MemberStatus.HONORARY_PRESIDENT,
}

DEFAULT_IMPORT_STATUS = MemberStatus.ACTIVE


def fold_text(value: Optional[str]) -> str:
    """Lowercase, strip accents and unify apostrophes for label matching."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value.strip().lower())
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.replace("’", "'").replace("`", "'")


def allowed_statuses() -> list:
    return [s.value for s in MemberStatus]


def parse_status(value: StatusLike) -> Optional[MemberStatus]:
    """Return the canonical status for a token, or None if it is not one."""
    if isinstance(value, MemberStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return MemberStatus(value)
    except ValueError:
        return None


def is_valid_status(value: StatusLike) -> bool:
    return parse_status(value) is not None


def is_unique_role(value: StatusLike) -> bool:
    return parse_status(value) in UNIQUE_ROLES


def is_bureau_role(value: StatusLike) -> bool:
    return parse_status(value) in BUREAU_ROLES


def is_active_like(value: StatusLike) -> bool:
    return parse_status(value) in ACTIVE_LIKE_STATUSES


def status_label(value: StatusLike) -> str:
    status = parse_status(value)
    if status is None:
        return str(value) if value is not None else ""
    return STATUS_LABELS[status]


def status_from_label(label: Optional[str]) -> MemberStatus:
    """Map a free-text roster label to a canonical status.

    Accepts canonical tokens, display labels and the synonym table;
    anything else falls back to ``active``.
    """
    folded = fold_text(label)
    if not folded:
        return DEFAULT_IMPORT_STATUS
    token = parse_status(folded.replace(" ", "_").replace("-", "_"))
    if token is not None:
        return token
    return STATUS_SYNONYMS.get(folded, DEFAULT_IMPORT_STATUS)


def active_member_statuses(include_honorary_president: bool = True) -> FrozenSet[MemberStatus]:
    """Statuses counted as "active members" in statistics."""
    if include_honorary_president:
        return ACTIVE_LIKE_STATUSES
    return ACTIVE_LIKE_STATUSES - {MemberStatus.HONORARY_PRESIDENT}
