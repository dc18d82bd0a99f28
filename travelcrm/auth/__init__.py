"""Authentication module."""

from travelcrm.auth.dependencies import (
    get_current_user,
    get_current_user_optional,
    require_intake,
    require_manager,
    require_roles,
    require_sales,
)
from travelcrm.auth.jwt import COOKIE_NAME, create_access_token, verify_token

__all__ = [
    "COOKIE_NAME",
    "create_access_token",
    "verify_token",
    "get_current_user",
    "get_current_user_optional",
    "require_roles",
    "require_manager",
    "require_sales",
    "require_intake",
]
