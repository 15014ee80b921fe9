"""Store settings service - receipt header and store identity."""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from pos.exceptions import BusinessLogicError, RemoteStoreError
from pos.models import StoreSettings
from pos.services.realtime_service import notify_change

logger = logging.getLogger(__name__)


def get_store_settings(session, user_id: Optional[int]) -> Optional[StoreSettings]:
    """Settings row for an operator, or None before the first save."""
    if user_id is None:
        return None
    return session.query(StoreSettings).filter(StoreSettings.user_id == user_id).first()


def upsert_store_settings(
    session,
    user_id: int,
    name: str,
    logo: Optional[str] = None,
    address: Optional[str] = None,
    phone: Optional[str] = None,
    notes: Optional[str] = None
) -> StoreSettings:
    """
    Create the operator's settings on first save, update them afterwards.

    Only the store name is required.
    """
    name = (name or '').strip()
    if not name:
        raise BusinessLogicError('Nama toko wajib diisi.')

    try:
        settings = get_store_settings(session, user_id)
        if settings is None:
            settings = StoreSettings(user_id=user_id)
            session.add(settings)

        settings.store_name = name
        settings.store_logo = logo or None
        settings.store_address = address
        settings.store_phone = phone
        settings.receipt_notes = notes
        settings.updated_at = datetime.now(timezone.utc)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception(f"Error saving settings for operator {user_id}: {e}")
        raise RemoteStoreError('Gagal menyimpan pengaturan')

    notify_change('settings')
    return settings


def upload_logo(file, user_id: int, storage=None) -> str:
    """Upload a logo binary and return the public URL to store in settings."""
    if storage is None:
        from pos.services.storage_service import get_storage_service
        storage = get_storage_service()
    try:
        return storage.upload_store_logo(file, user_id)
    except ValueError as e:
        raise BusinessLogicError(str(e))
