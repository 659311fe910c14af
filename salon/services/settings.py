# salon/services/settings.py

from typing import Dict

from sqlmodel import Session, select

from salon.models import AppSetting


def get_app_settings(session: Session, business_id: str) -> Dict[str, str]:
    """All label/config keys of a business as a flat dict."""
    rows = session.exec(select(AppSetting).where(AppSetting.business_id == business_id)).all()
    return {row.key: row.value for row in rows}


def get_setting(settings: Dict[str, str], key: str, fallback: str = "") -> str:
    return settings.get(key, fallback)


def upsert_settings(session: Session, business_id: str, values: Dict[str, str]) -> Dict[str, str]:
    existing = {
        row.key: row
        for row in session.exec(select(AppSetting).where(AppSetting.business_id == business_id)).all()
    }
    for key, value in values.items():
        row = existing.get(key)
        if row is None:
            session.add(AppSetting(business_id=business_id, key=key, value=value))
        else:
            row.value = value
            session.add(row)
    session.commit()
    return get_app_settings(session, business_id)
