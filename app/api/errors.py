from fastapi import HTTPException, status
from app.core.exceptions import (
    ApplicationsClosedError,
    CsvImportError,
    DuplicateApplicationError,
    EmailInUseError,
    InvalidStatusError,
    MemberNotFoundError,
    MembershipError,
    NoChangesError,
    RoleConflictError,
    ValidationError,
)

STATUS_CODES = (
    (MemberNotFoundError, status.HTTP_404_NOT_FOUND),
    (RoleConflictError, status.HTTP_409_CONFLICT),
    (EmailInUseError, status.HTTP_409_CONFLICT),
    (DuplicateApplicationError, status.HTTP_409_CONFLICT),
    (ApplicationsClosedError, status.HTTP_403_FORBIDDEN),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidStatusError, status.HTTP_400_BAD_REQUEST),
    (NoChangesError, status.HTTP_400_BAD_REQUEST),
    (CsvImportError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(error: MembershipError) -> HTTPException:
    """Translate a service error into the matching HTTP error."""
    for error_type, code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
