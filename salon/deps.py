# salon/deps.py

from fastapi import HTTPException, Request

from .models import Manicurist, User, UserRole
from .queue import NotificationScheduler


def require_role(user: User, role: UserRole):
    if user.role != role:
        raise HTTPException(status_code=403, detail="Forbidden")


def require_can_edit(user: User, manicurist: Manicurist):
    # Manicurists edit their own schedule/blocks; admins edit anyone's
    if user.role != UserRole.ADMIN and manicurist.user_id != user.id:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_scheduler(request: Request) -> NotificationScheduler:
    return request.app.state.scheduler
