"""Request-scoped caller context passed explicitly to route handlers."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException, status


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and which household they act for.

    Identity comes from upstream headers; verifying it is the job of the
    gateway in front of this service.
    """

    user_id: str
    household_id: str | None = None

    def require_household(self, household_id: str) -> None:
        """Raise 403 unless the caller belongs to household_id."""
        if self.household_id != household_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this household",
            )


def get_request_context(
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_household_id: Optional[str] = Header(None, alias="X-Household-ID"),
) -> RequestContext:
    """
    Build the request context from the X-User-ID / X-Household-ID headers.

    Raises:
        HTTPException 400: If X-User-ID is not provided
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header is required.",
            headers={"X-User-ID": "required"},
        )
    household_id = x_household_id.strip() if x_household_id else None
    return RequestContext(user_id=x_user_id.strip(), household_id=household_id or None)
