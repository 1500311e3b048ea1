"""
Token handling and ownership checks.

The identity of a request is the ``email`` claim of a signed JWT carried in a
cookie. ``TokenVerifier`` is built by the app factory with the decode function
and secret it needs, and ``require_auth`` looks it up on the current app, so
no verification state lives at module level.
"""
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from .errors import Forbidden, Unauthenticated

ALGORITHM = "HS256"


def issue_token(email, secret, ttl_hours=6):
    """Sign a token for ``email`` that expires after ``ttl_hours``."""
    now = datetime.now(timezone.utc)
    payload = {
        "email": email,
        "iat": now,
        "exp": now + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token, secret):
    """Return the verified claims, raising ``jwt.InvalidTokenError`` otherwise."""
    return jwt.decode(token, secret, algorithms=[ALGORITHM], options={"require": ["exp"]})


class TokenVerifier:
    def __init__(self, decode, secret, cookie_name="token"):
        self.decode = decode
        self.secret = secret
        self.cookie_name = cookie_name

    def verify(self, req):
        token = req.cookies.get(self.cookie_name)
        if not token:
            raise Unauthenticated("Unauthorized access")
        try:
            claims = self.decode(token, self.secret)
        except jwt.InvalidTokenError as e:
            current_app.logger.info("Rejected token: %s", e)
            raise Unauthenticated("Unauthorized access")
        if not claims.get("email"):
            raise Unauthenticated("Unauthorized access")
        return claims


def require_auth(view):
    """Reject the request with 401 unless it carries a valid token."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        verifier = current_app.extensions["token_verifier"]
        g.user = verifier.verify(request)
        return view(*args, **kwargs)
    return wrapper


def current_email():
    return g.user["email"]


def resolve_identity(*claimed, query_required=False):
    """
    Return the authenticated email after checking the caller's claims.

    The ``email`` query parameter and any extra ``claimed`` emails (e.g. from
    the body) must equal the token's email when present. With
    ``query_required`` a missing query email is rejected as well.
    """
    email = current_email()
    query_email = request.args.get("email")
    if query_email is None and query_required:
        raise Forbidden("Forbidden access")
    for candidate in (query_email,) + claimed:
        if candidate is not None and candidate != email:
            raise Forbidden("Forbidden access")
    return email


def ensure_owner(document, email):
    if document.get("email") != email:
        raise Forbidden("Forbidden access")
