"""
Signed, time-bounded identity tokens.

Tokens are HS256 JWTs carrying ``{sub: "auth", user_id, iat, exp}``. Verification
needs nothing but the token, the signing secret and the current time, and it
reports expected failures as a tagged result rather than raising.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from .errors import AuthFailure

ALGORITHM = 'HS256'
SUBJECT = 'auth'
LIFETIME = timedelta(hours=24)
REQUIRED_CLAIMS = ['sub', 'user_id', 'iat', 'exp']


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    identity_id: str
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class TokenVerification:
    claims: Optional[TokenClaims] = None
    failure: Optional[AuthFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def reject(cls, failure: AuthFailure) -> 'TokenVerification':
        return cls(failure=failure)


class TokenService:
    def __init__(self, secret: bytes, clock: Callable[[], datetime] = utcnow):
        self._secret = secret
        self._clock = clock

    def issue(self, identity_id: str, now: Optional[datetime] = None) -> str:
        issued_at = int((now or self._clock()).timestamp())
        claims = {
            'sub': SUBJECT,
            'user_id': str(identity_id),
            'iat': issued_at,
            'exp': issued_at + int(LIFETIME.total_seconds()),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str, now: Optional[datetime] = None) -> TokenVerification:
        # Expiry is checked below against the injected clock, not PyJWT's.
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={
                    'verify_exp': False,
                    'verify_iat': False,
                    'require': REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidSignatureError:
            return TokenVerification.reject(AuthFailure.SIGNATURE_INVALID)
        except jwt.InvalidTokenError:
            return TokenVerification.reject(AuthFailure.MALFORMED)

        claims = _parse_claims(payload)
        if claims is None:
            return TokenVerification.reject(AuthFailure.MALFORMED)

        if (now or self._clock()).timestamp() > claims.expires_at:
            return TokenVerification.reject(AuthFailure.TOKEN_EXPIRED)
        return TokenVerification(claims=claims)


def _parse_claims(payload) -> Optional[TokenClaims]:
    subject = payload.get('sub')
    identity_id = payload.get('user_id')
    issued_at = payload.get('iat')
    expires_at = payload.get('exp')
    if subject != SUBJECT or not isinstance(identity_id, str) or not identity_id:
        return None
    for value in (issued_at, expires_at):
        if isinstance(value, bool) or not isinstance(value, int):
            return None
    if expires_at < issued_at:
        return None
    return TokenClaims(subject, identity_id, issued_at, expires_at)
