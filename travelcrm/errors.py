"""
Error taxonomy for the CRM core.

Every kind carries its HTTP status and a localized default message.
Services raise these; the API layer renders them via exception handlers
registered in main.py.
"""

from typing import Any, Optional

from fastapi import status


class CRMError(Exception):
    """Base exception for all CRM business errors."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "حدث خطأ غير متوقع"

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class Unauthenticated(CRMError):
    """No valid actor identity."""

    code = "unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "يجب تسجيل الدخول أولاً"


class PermissionDenied(CRMError):
    """Actor identity is valid but lacks the role or ownership required."""

    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "ليس لديك صلاحية لتنفيذ هذا الإجراء"


class InvalidArgument(CRMError):
    """Malformed or missing required fields."""

    code = "invalid_argument"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "البيانات المدخلة غير صحيحة"


class NotFound(CRMError):
    """Referenced client or user id does not resolve."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "العنصر غير موجود"


class AlreadyExists(CRMError):
    """Duplicate unique value (e.g. email on account creation)."""

    code = "already_exists"
    status_code = status.HTTP_409_CONFLICT
    default_message = "البريد الإلكتروني مستخدم بالفعل"


class Unavailable(CRMError):
    """Transient failure of the store or identity provider."""

    code = "unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "الخدمة غير متاحة حالياً، يرجى المحاولة مرة أخرى"


class Internal(CRMError):
    """Unexpected failure. Message to the caller stays generic."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "حدث خطأ غير متوقع"
