# salon/routers/settings_routes.py

from typing import Dict

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from salon.auth import get_current_user
from salon.db import get_session
from salon.deps import require_role
from salon.messages import DEFAULTS, TEMPLATE_KEYS
from salon.models import User, UserRole
from salon.services.settings import get_app_settings, upsert_settings

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
)


def _with_defaults(values: Dict[str, str]) -> Dict[str, str]:
    # message templates always show up, falling back to the built-in text
    merged = {key: DEFAULTS[kind] for kind, key in TEMPLATE_KEYS.items()}
    merged.update({key: value for key, value in values.items() if value.strip() or key not in merged})
    return merged


@router.get("", response_model=Dict[str, str])
def read_settings(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return _with_defaults(get_app_settings(session, current_user.business_id))


@router.put("", response_model=Dict[str, str])
def update_settings(
    values: Dict[str, str] = Body(...),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    require_role(current_user, UserRole.ADMIN)
    return _with_defaults(upsert_settings(session, current_user.business_id, values))
