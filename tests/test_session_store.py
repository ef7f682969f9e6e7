"""
Tests for the cookie-backed session store.
"""

from starlette.requests import Request
from starlette.responses import Response

from auth import Session, SessionCodec, SessionStore


def _request(cookie: str | None = None) -> Request:
    headers = []
    if cookie is not None:
        headers.append((b"cookie", f"auth-session={cookie}".encode("latin-1")))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _attributes(response: Response) -> list[str]:
    return [part.strip().lower() for part in response.headers["set-cookie"].split(";")[1:]]


def _issue(store: SessionStore, resource_id: str = "adb") -> Request:
    response = Response()
    session = store.create_session(response, resource_id)
    return _request(store.codec.encrypt(session))


def test_create_session_sets_hardened_cookie(session_store: SessionStore):
    response = Response()
    session_store.create_session(response, "adb")

    cookie = response.headers["set-cookie"].lower()
    attributes = _attributes(response)
    assert cookie.startswith("auth-session=")
    assert "httponly" in attributes
    assert "samesite=lax" in attributes
    assert "path=/" in attributes
    assert "max-age=86400" in attributes
    assert "secure" not in attributes


def test_secure_flag_outside_development(codec: SessionCodec):
    response = Response()
    SessionStore(codec=codec, secure=True).create_session(response, "adb")

    assert "secure" in _attributes(response)


def test_created_cookie_decrypts_to_session(session_store: SessionStore, clock):
    response = Response()
    session_store.create_session(response, "adb")

    raw_value = response.headers["set-cookie"].split(";")[0].split("=", 1)[1].strip('"')
    assert session_store.codec.decrypt(raw_value) == Session("adb", True, clock.now)


def test_get_session_without_cookie(session_store: SessionStore):
    assert session_store.get_session(_request()) is None


def test_get_session_with_garbage_cookie(session_store: SessionStore):
    assert session_store.get_session(_request("garbage")) is None


def test_session_valid_until_max_age(session_store: SessionStore, clock):
    request = _issue(session_store)

    clock.advance(session_store.max_age - 1)
    assert session_store.get_session(request) is not None
    assert session_store.is_authenticated(request, "adb")

    clock.advance(2)
    assert session_store.get_session(request) is None
    assert not session_store.is_authenticated(request, "adb")


def test_session_not_transferable_between_resources(session_store: SessionStore):
    request = _issue(session_store, "adb")

    assert session_store.is_authenticated(request, "adb")
    assert not session_store.is_authenticated(request, "other")


def test_unauthenticated_payload_is_rejected(session_store: SessionStore, clock):
    blob = session_store.codec.encrypt(Session("adb", False, clock.now))

    assert not session_store.is_authenticated(_request(blob), "adb")


def test_clear_session_expires_cookie(session_store: SessionStore):
    response = Response()
    session_store.clear_session(response)

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("auth-session=")
    assert "max-age=0" in cookie
