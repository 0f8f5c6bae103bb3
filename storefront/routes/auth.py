# storefront/routes/auth.py
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from storefront.config import Settings
from storefront.database import get_db
from storefront.dependencies import get_current_user, get_settings
from storefront.errors import StorefrontError
from storefront.models.users import User
from storefront.schemas import user as schemas
from storefront.services.identity import IdentityResolver
from storefront.utils.audit import client_ip, write_log
from storefront.utils.tokenJWT import create_access_token

router = APIRouter(tags=["Auth"])


# Register a new user
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    try:
        new_user = IdentityResolver(db).register(
            name=payload.name,
            mobile=payload.mobile,
            email=payload.email,
            password=payload.password,
        )
    except StorefrontError as e:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": e.kind})
        raise

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})
    return new_user


# Authenticate user, issue the session credential as body token and cookie
@router.post("/login", response_model=schemas.Token)
def login(
    payload: schemas.UserLogin,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        db_user = IdentityResolver(db).authenticate(payload.email, payload.password)
    except StorefrontError as e:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email, "reason": e.kind})
        raise

    access_token = create_access_token(data={"sub": db_user.email, "admin": db_user.is_admin}, settings=settings)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=access_token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": db_user.email})
    return {"access_token": access_token, "token_type": "bearer"}


# Drop the session cookie; bearer tokens simply expire
@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    write_log(db, user_id=None, action="LOGOUT", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"had_cookie": settings.SESSION_COOKIE_NAME in request.cookies})
    return {"success": True, "message": "Logged out"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
