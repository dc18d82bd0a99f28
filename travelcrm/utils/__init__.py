"""Utility functions."""

from travelcrm.utils.audit import get_client_ip, log_action
from travelcrm.utils.password import (
    check_login_password,
    hash_password,
    validate_password,
    verify_password,
)

__all__ = [
    "hash_password",
    "verify_password",
    "check_login_password",
    "validate_password",
    "log_action",
    "get_client_ip",
]
