"""Per-request view over the signed cookie session."""

from __future__ import annotations

import uuid
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

from fastapi import Request

if TYPE_CHECKING:
    from app.models.user import User
    from app.services.profiles import Profile


USER_ID_KEY = "userId"
USER_TYPE_KEY = "userType"
USER_EMAIL_KEY = "userEmail"
USER_FIRST_NAME_KEY = "userFirstName"
USER_LAST_NAME_KEY = "userLastName"


class SessionContext:
    """Explicit handle on the authenticated principal for one request.

    The lifecycle services receive this object instead of touching
    ``request.session`` directly, so they can be exercised with a plain dict.
    Starlette's ``SessionMiddleware`` serialises whatever is left in the
    underlying mapping into the response cookie.
    """

    def __init__(self, data: MutableMapping[str, Any]) -> None:
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def destroy(self) -> None:
        self._data.clear()

    def establish(self, user: "User", profile: "Profile | None" = None) -> None:
        """Bind the session to ``user``, replacing any previous principal."""

        first_name = getattr(profile, "first_name", None)
        last_name = getattr(profile, "last_name", None)

        self._data.clear()
        self.set(USER_ID_KEY, str(user.id))
        self.set(USER_TYPE_KEY, user.user_type.value)
        self.set(USER_EMAIL_KEY, user.email)
        self.set(USER_FIRST_NAME_KEY, first_name or None)
        self.set(USER_LAST_NAME_KEY, last_name or None)

    @property
    def user_id(self) -> uuid.UUID | None:
        raw = self.get(USER_ID_KEY)
        if raw is None:
            return None
        try:
            return uuid.UUID(str(raw))
        except ValueError:
            return None

    @property
    def email(self) -> str | None:
        return self.get(USER_EMAIL_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.get(USER_ID_KEY) is not None

    def snapshot(self) -> dict[str, Any]:
        """Return the public part of the session for introspection responses."""

        return {
            "userId": self.get(USER_ID_KEY),
            "userType": self.get(USER_TYPE_KEY),
            "email": self.get(USER_EMAIL_KEY),
        }


def get_session_context(request: Request) -> SessionContext:
    """FastAPI dependency wrapping the request's cookie session."""

    return SessionContext(request.session)


__all__ = ["SessionContext", "get_session_context"]
