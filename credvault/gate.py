"""
Request authentication.

Every protected request walks the same stages: parse the Authorization header,
verify the bearer token, bind the identity. Each stage produces one outcome and
the first rejection ends the walk; the wrapped view only ever runs for an
authenticated identity.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Optional

from flask import current_app, g, jsonify, request

from .errors import AuthFailure
from .tokens import TokenService

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '


class GateState(str, Enum):
    AUTHENTICATED = 'authenticated'
    REJECTED = 'rejected'


@dataclass(frozen=True)
class GateOutcome:
    state: GateState
    identity_id: Optional[str] = None
    reason: Optional[AuthFailure] = None

    @property
    def authenticated(self) -> bool:
        return self.state is GateState.AUTHENTICATED

    @classmethod
    def rejected(cls, reason: AuthFailure) -> 'GateOutcome':
        return cls(GateState.REJECTED, reason=reason)


def _parse_header(header_value: Optional[str]):
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None, GateOutcome.rejected(AuthFailure.UNAUTHORIZED)
    token = header_value[len(BEARER_PREFIX):].strip()
    if not token:
        return None, GateOutcome.rejected(AuthFailure.UNAUTHORIZED)
    return token, None


def _bind(identity_id: str) -> GateOutcome:
    try:
        bound = str(uuid.UUID(identity_id))
    except ValueError:
        return GateOutcome.rejected(AuthFailure.MALFORMED)
    return GateOutcome(GateState.AUTHENTICATED, identity_id=bound)


class AccessGate:
    def __init__(self, tokens: TokenService):
        self._tokens = tokens

    def authenticate(self, header_value: Optional[str]) -> GateOutcome:
        token, rejection = _parse_header(header_value)
        if rejection is not None:
            return rejection

        verification = self._tokens.verify(token)
        if not verification.ok:
            return GateOutcome.rejected(verification.failure)

        return _bind(verification.claims.identity_id)


def auth_required(view):
    """Run the access gate before the view; reject with 401 on any failure."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        gate = current_app.extensions['credvault'].gate
        outcome = gate.authenticate(request.headers.get('Authorization'))
        if not outcome.authenticated:
            logger.info('Rejected %s %s: %s', request.method, request.path, outcome.reason.value)
            return jsonify({'error': 'Unauthorized'}), 401
        g.identity_id = outcome.identity_id
        return view(*args, **kwargs)
    return wrapper


def current_identity() -> str:
    return g.identity_id
