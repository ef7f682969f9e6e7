"""
Cookie-backed Session Store

Reads and writes the encrypted session cookie. Handlers receive the store
as a dependency and pass in the request/response they are working with.
"""

import time
from collections.abc import Callable

from fastapi import Request, Response

from core.logger import get_logger

from .session_codec import Session, SessionCodec

logger = get_logger(__name__)


class SessionStore:
    def __init__(
        self,
        codec: SessionCodec,
        cookie_name: str = "auth-session",
        max_age: int = 60 * 60 * 24,
        secure: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize Session Store

        Args:
            codec: Codec used to seal and open cookie values
            cookie_name: Name of the session cookie
            max_age: Session validity window in seconds
            secure: Set the Secure flag on the cookie
            clock: Time source returning epoch seconds
        """
        self.codec = codec
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure
        self.clock = clock

    def create_session(self, response: Response, resource_id: str) -> Session:
        """Issue a fresh session for a resource and attach it to the response."""
        session = Session(resource_id=resource_id, authenticated=True, issued_at=self.clock())

        response.set_cookie(
            key=self.cookie_name,
            value=self.codec.encrypt(session),
            max_age=self.max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

        logger.info(f"Session created for resource: {resource_id}")
        return session

    def get_session(self, request: Request) -> Session | None:
        """Return the request's session if present, intact and unexpired."""
        cookie = request.cookies.get(self.cookie_name)
        if not cookie:
            return None

        session = self.codec.decrypt(cookie)
        if session is None:
            return None

        # The cookie max-age should already have removed it
        if self.clock() - session.issued_at > self.max_age:
            return None

        return session

    def clear_session(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite="lax",
        )

    def is_authenticated(self, request: Request, resource_id: str) -> bool:
        """Sessions are only valid for the resource they were issued for."""
        session = self.get_session(request)
        return session is not None and session.authenticated and session.resource_id == resource_id
