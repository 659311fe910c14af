# salon/routers/users_routes.py

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salon.db import get_session
from salon.models import Business, User, UserRole
from salon.schemas import BusinessSignup, UserCreate, UserPublic
from salon.auth import get_current_user, hash_password
from salon.deps import require_role

router = APIRouter(
    tags=["users"],
)


def _ensure_email_free(session: Session, email: str):
    existing = session.exec(
        select(User).where(User.email == email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")


@router.get("/me", response_model=UserPublic)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/businesses", status_code=201, response_model=UserPublic)
def create_business(
    signup: BusinessSignup,
    session: Session = Depends(get_session),
):
    # New tenant with its first admin
    _ensure_email_free(session, signup.email)

    business = Business(name=signup.business_name)
    session.add(business)
    session.flush()

    admin = User(
        business_id=business.id,
        email=signup.email,
        name=signup.name,
        password_hash=hash_password(signup.password),
        role=UserRole.ADMIN,
    )
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    _ensure_email_free(session, user.email)

    db_user = User(
        business_id=current_user.business_id,
        email=user.email,
        name=user.name,
        password_hash=hash_password(user.password),
        role=user.role,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id
    return db_user
