"""
Settings blueprint - store identity printed on receipts.
"""
import logging

from flask import Blueprint, request, g

from pos.exceptions import BusinessLogicError
from pos.middleware import require_login
from pos.services.settings_service import upload_logo
from pos.state import get_store
from pos.utils.http import request_data, till_response

logger = logging.getLogger(__name__)

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('/')
@require_login
def get_settings():
    store = get_store()
    return till_response({'settings': store.state.settings.to_dict()}, store)


@settings_bp.route('/', methods=['POST', 'PUT'])
@require_login
def save_settings():
    """
    Upsert the store identity.

    The logo can be a URL in the body or a file in the 'logo_file' field,
    which is uploaded first and replaced by its public URL.
    """
    store = get_store()
    data = request_data()
    logo = data.get('logo') or None

    logo_file = request.files.get('logo_file')
    if logo_file and logo_file.filename:
        logo = upload_logo(logo_file, g.user_id)

    if not store.update_store_identity(
        data.get('name', ''),
        logo,
        data.get('address', ''),
        data.get('phone', ''),
        data.get('receipt_notes', ''),
    ):
        return till_response(None, store, 400)
    return till_response({'settings': store.state.settings.to_dict()}, store)


@settings_bp.route('/logo', methods=['POST'])
@require_login
def upload_store_logo():
    """Upload a logo and return its public URL without saving the settings."""
    store = get_store()
    logo_file = request.files.get('logo')
    if not logo_file or not logo_file.filename:
        raise BusinessLogicError('Tidak ada file yang dipilih')

    url = upload_logo(logo_file, g.user_id)
    logger.info(f"[STORAGE] Logo uploaded for operator {g.user_id}")
    return till_response({'logo': url}, store, 201)
