"""JWT token creation and decoding.

Token claims:
  - sub:             account id ("client:<tax id>" or "admin:<username>")
  - role:            client | admin | supervisor
  - company_tax_id:  tax id of the company (client tokens only)
  - type:            "access"
  - exp:             expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from drum_returns.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    subject: str,
    role: str,
    company_tax_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": subject,
        "role": role,
        "type": "access",
        "exp": expire,
    }
    if company_tax_id:
        payload["company_tax_id"] = company_tax_id
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
