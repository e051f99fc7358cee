from datetime import datetime, timezone
from jose import JWTError, jwt


def read_claims(token: str) -> dict | None:
    """Reads the JWT payload without verifying the signature.

    The backend owns the signing key; the client only needs `exp` and `sub`.
    Returns None for anything that is not a decodable JWT.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None

def token_expiry(token: str) -> datetime | None:
    """UTC expiration of the token, or None when it carries no usable `exp`."""
    claims = read_claims(token)
    if not claims or "exp" not in claims:
        return None
    try:
        return datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (TypeError, ValueError):
        return None

def is_token_expired(token: str, now: datetime = None) -> bool:
    # Opaque tokens and tokens without exp are left for the server to reject
    expiry = token_expiry(token)
    if expiry is None:
        return False
    return expiry <= (now or datetime.now(timezone.utc))
