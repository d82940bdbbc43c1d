from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.db.database import get_db
from app.db import models, schemas
from app.db.retry import with_retry
from app.core.security import verify_password, create_access_token
from app.core.config import settings
from app.core.logger import logger
from app.api.deps import get_current_user

router = APIRouter()


@router.post("/login")
def login(form_data: schemas.UserLogin, response: Response, db: Session = Depends(get_db)):
    """Check credentials and set the session cookie."""
    username = form_data.username.strip()
    user = with_retry(
        lambda: db.query(models.User).filter(models.User.username == username).first(),
        db,
    )

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info("Failed login for %s", username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    token = create_access_token(data={"sub": str(user.id), "username": user.username})
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_MAX_AGE_SECONDS,
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        path="/",
    )

    return {
        "success": True,
        "user": {"id": str(user.id), "username": user.username},
    }


@router.post("/logout")
def logout(response: Response):
    """Clear the session cookie"""
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me", response_model=schemas.UserOut)
def get_current_user_info(
    current_user: models.User = Depends(get_current_user)
):
    """Get current user profile"""
    return current_user
