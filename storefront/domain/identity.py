# storefront/domain/identity.py
import re
import uuid
from dataclasses import dataclass

from storefront.domain.errors import ValidationError

_SESSION_ID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def new_session_id() -> str:
    # uuid4 korzysta z os.urandom (CSPRNG)
    return str(uuid.uuid4())


def validate_session_id(value) -> str:
    if not isinstance(value, str) or not _SESSION_ID_RE.match(value):
        raise ValidationError("Malformed guest session id", field="session_id")
    return value.lower()


@dataclass(frozen=True)
class Owner:
    """Who a cart or order belongs to: an authenticated user or a guest session."""

    user_id: int | None = None
    session_id: str | None = None

    def __post_init__(self):
        if (self.user_id is None) == (self.session_id is None):
            raise ValidationError("Exactly one of user_id or session_id is required")

    @classmethod
    def user(cls, user_id: int) -> "Owner":
        return cls(user_id=user_id)

    @classmethod
    def guest(cls, session_id: str) -> "Owner":
        return cls(session_id=validate_session_id(session_id))

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    def __str__(self):
        if self.is_guest:
            return f"guest:{self.session_id}"
        return f"user:{self.user_id}"
