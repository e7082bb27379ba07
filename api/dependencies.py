"""API Dependencies - Authentication"""
from functools import lru_cache
from typing import Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from infrastructure.config import ADMIN_USERNAME, ADMIN_PASSWORD, ADMIN_EMAIL
from infrastructure.security import get_password_hash, decode_access_token
from api.schemas import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Operator accounts; the password is hashed on first lookup
operators_db: Dict[str, dict] = {
    ADMIN_USERNAME: {
        "username": ADMIN_USERNAME,
        "full_name": "Front Desk Administrator",
        "email": ADMIN_EMAIL,
        "role": "admin",
        "plain_password": ADMIN_PASSWORD,
        "disabled": False,
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
    }
}


@lru_cache(maxsize=None)
def _hashed_password(username: str, plain_password: str) -> str:
    return get_password_hash(plain_password)


def get_user(db: Dict[str, dict], username: str) -> Optional[UserInDB]:
    if username not in db:
        return None
    user_dict = db[username].copy()
    plain_password = user_dict.pop("plain_password", None)
    if plain_password is not None:
        user_dict["hashed_password"] = _hashed_password(username, plain_password)
    return UserInDB(**user_dict)


async def get_current_user(token: str = Depends(oauth2_scheme)) -> UserInDB:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        username: str = payload.get("sub")
        if username is None:
            raise credentials_exception
        token_data = TokenData(username=username)
    except JWTError:
        raise credentials_exception

    user = get_user(operators_db, username=token_data.username)
    if user is None:
        raise credentials_exception
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
