"""
Password hashing for employee accounts (bcrypt via passlib).
"""

from passlib.context import CryptContext

from travelcrm.errors import InvalidArgument

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def validate_password(password: str) -> str:
    """Reject passwords the identity provider would not accept."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidArgument(
            f"كلمة المرور يجب أن تكون {MIN_PASSWORD_LENGTH} أحرف على الأقل"
        )
    return password


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a login attempt against the stored hash.

    Returns False instead of raising when the stored hash is malformed.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def check_login_password(user, plain_password: str) -> bool:
    """
    Check a login attempt for a possibly unknown account.

    An unknown email still pays for one bcrypt verification, so response
    timing does not reveal which emails have accounts.
    """
    if user is None:
        pwd_context.dummy_verify()
        return False
    return verify_password(plain_password, user.password_hash)
