from datetime import datetime, timedelta, timezone
import uuid
from jose import jwt, JWTError
from timesheet.config import settings


# Tokens are issued by the auth service. This helper mints one with the same
# claims for scripts and tests.
def create_access_token(data: dict, expires_minutes: int = 60) -> str:
    now = datetime.now(timezone.utc)
    to_encode = data.copy()
    to_encode["token_type"] = "access"
    to_encode["iat"] = int(now.timestamp())
    to_encode["exp"] = int((now + timedelta(minutes=expires_minutes)).timestamp())
    if "jti" not in to_encode:
        to_encode["jti"] = uuid.uuid4().hex

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def decode_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        return payload
    except JWTError:
        return None
