# assertion.py
import time
from typing import Optional

import jwt  # PyJWT

from errors import InvalidArgument, SigningFailure
from private_key import PrivateKey

ALGORITHM = "RS256"
DEFAULT_VALIDITY_SECONDS = 60


def _check_validity(validity_seconds) -> int:
    if isinstance(validity_seconds, bool) or not isinstance(validity_seconds, int) or validity_seconds <= 0:
        raise InvalidArgument(f"validity_seconds must be a positive integer, was {validity_seconds!r}")
    return validity_seconds


def build_claims(application_id: str, validity_seconds: int = DEFAULT_VALIDITY_SECONDS,
                 now: Optional[int] = None) -> dict:
    validity_seconds = _check_validity(validity_seconds)
    issued_at = int(time.time()) if now is None else int(now)
    return {"iat": issued_at, "exp": issued_at + validity_seconds, "iss": application_id}


def sign_assertion(application_id: str, private_key: PrivateKey,
                   validity_seconds: int = DEFAULT_VALIDITY_SECONDS,
                   now: Optional[int] = None) -> str:
    """
    Return a JWT identifying the application, valid for `validity_seconds`.

    The assertion is exchanged once for an installation token, so the window
    stays short. A key that does not parse raises SigningFailure.
    """
    payload = build_claims(application_id, validity_seconds, now)
    try:
        token = jwt.encode(payload, private_key.key, algorithm=ALGORITHM)
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise SigningFailure(f"Failed to sign the application assertion; {e}") from e
    return token.decode() if isinstance(token, (bytes, bytearray)) else token
