# dayos/utils/auth.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from dayos.config.settings import Settings
from dayos.database import get_db
from dayos.models.user import User

SECRET_KEY = Settings.AUTH['secret_key']
ALGORITHM = Settings.AUTH['algorithm']

# Tokens are issued by the identity provider; this service only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = verify_token(token)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        raise credentials_exception
    return user

def verify_token(token: str) -> Optional[dict]:
    """Verify JWT token and return payload without raising exceptions"""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None

def create_access_token(user_id: int) -> str:
    return jwt.encode({"sub": str(user_id)}, SECRET_KEY, algorithm=ALGORITHM)

def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Cron endpoints require ``Bearer $CRON_SECRET`` when a secret is configured"""
    secret = Settings.APP['cron_secret']
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
