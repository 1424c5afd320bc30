"""Validation and normalization of applicant, admin and imported data."""
from typing import List, Mapping, Optional

MAX_EMAIL_LENGTH = 254


def clean(value) -> Optional[str]:
    """Trim a raw value; blank or missing becomes None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_email(value) -> Optional[str]:
    value = clean(value)
    return value.lower() if value else None


def is_valid_email(email) -> bool:
    """Linear-scan email shape check (no regular expression).

    local@domain where local is non-empty, there is exactly one '@',
    no whitespace anywhere, and the domain contains a '.' that is
    neither its first nor its last character.
    """
    if not email or not isinstance(email, str) or len(email) > MAX_EMAIL_LENGTH:
        return False
    at_index = -1
    for i, char in enumerate(email):
        if char.isspace():
            return False
        if char == "@":
            if at_index != -1:
                return False
            at_index = i
    if at_index <= 0:
        return False
    domain = email[at_index + 1:]
    dot_index = domain.find(".")
    if dot_index == -1:
        return False
    return not domain.startswith(".") and not domain.endswith(".")


def has_contact_channel(data: Mapping) -> bool:
    return any(clean(data.get(key)) for key in ("phone", "telegram", "discord"))


def validate_application(data: Mapping) -> List[str]:
    """Return every problem with a new application, in form order."""
    errors = []

    if not clean(data.get("first_name")):
        errors.append("Le prénom est requis")
    if not clean(data.get("last_name")):
        errors.append("Le nom est requis")

    email = clean(data.get("email"))
    if not email:
        errors.append("L'email est requis")
    elif not is_valid_email(email):
        errors.append("L'email est invalide")

    if not clean(data.get("enrollment_track")):
        errors.append("Le cursus est requis")

    if not has_contact_channel(data):
        errors.append("Au moins un moyen de contact est requis")

    return errors


def validate_import_row(first_name: Optional[str], last_name: Optional[str], email: Optional[str]) -> List[str]:
    """Required-field and email checks for one CSV row (no contact rule)."""
    errors = []
    if not first_name:
        errors.append("Missing first name")
    if not last_name:
        errors.append("Missing last name")
    if not email:
        errors.append("Missing email")
    elif not is_valid_email(email):
        errors.append(f"Invalid email '{email}'")
    return errors
