import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from doconcall.auth import jwt_handler
from doconcall.database import get_db
from doconcall.models.user import User
from doconcall.scheduling.policy import Actor

security = HTTPBearer()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def get_current_actor(current_user: User = Depends(get_current_user)) -> Actor:
    return Actor(
        user_id=current_user.id,
        role=(current_user.role or "").strip().lower(),
        approved=bool(current_user.approved),
    )
