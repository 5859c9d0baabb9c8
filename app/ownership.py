"""
Ownership checks for mutations.

Posts and comments may only be changed by the identity stored on them at
creation. Categories have no owner; who may change them is a setting.
"""
import enum
from typing import Optional

from .auth import Caller
from .config import Settings
from .logging_config import auth_logger
from .responses import forbidden, unauthorized


class Decision(str, enum.Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


def evaluate(owner_id: str, caller_id: Optional[str]) -> Decision:
    """Allow iff there is a caller and it is the owner."""
    if caller_id is None:
        return Decision.UNAUTHENTICATED
    if caller_id != owner_id:
        return Decision.FORBIDDEN
    return Decision.ALLOW


def require_owner(owner_id: str, caller: Optional[Caller], resource: str = "resource") -> None:
    """Raise 401 for anonymous callers and 403 for callers who are not the owner."""
    decision = evaluate(owner_id, caller.id if caller else None)
    if decision is Decision.UNAUTHENTICATED:
        unauthorized(f"Sign in to modify this {resource}")
    if decision is Decision.FORBIDDEN:
        auth_logger.warning(
            "Ownership check denied",
            resource=resource,
            caller_id=caller.id,
        )
        forbidden(f"Only the author can modify this {resource}")


def require_category_editor(caller: Optional[Caller], settings: Settings) -> Caller:
    """Gate category mutations according to category_mutation_requires_role."""
    if caller is None:
        unauthorized("Sign in to manage categories")

    if settings.category_mutation_requires_role == "admin-only":
        if not (caller.is_admin or caller.id in settings.admin_user_ids):
            auth_logger.warning("Category mutation denied", caller_id=caller.id)
            forbidden("Only administrators can manage categories")

    return caller
