"""
Authentication blueprint.
Handles operator registration, login, logout and the session probe.
"""
import logging

from flask import Blueprint, jsonify, g
from flask_wtf.csrf import generate_csrf

from pos.database import db_session
from pos.exceptions import BusinessLogicError
from pos.middleware import require_login
from pos.services.auth_service import authenticate, get_identity, register_operator
from pos.utils.http import request_data

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _operator_dict(operator) -> dict:
    return {'id': operator.id, 'email': operator.email, 'full_name': operator.full_name}


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an operator account and sign it in on a new till."""
    data = request_data()
    password = data.get('password', '')
    if data.get('password_confirm') is not None and data.get('password_confirm') != password:
        raise BusinessLogicError('Kata sandi tidak cocok.')

    operator = register_operator(db_session, data.get('email', ''), password, data.get('full_name'))
    auth_session = get_identity().sign_in(operator)
    return jsonify({
        'status': 'ok',
        'operator': _operator_dict(operator),
        'session': auth_session.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate email + password and open a till session."""
    data = request_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''
    if not email or not password:
        raise BusinessLogicError('Email dan kata sandi wajib diisi.')

    operator = authenticate(db_session, email, password)
    auth_session = get_identity().sign_in(operator)
    return jsonify({
        'status': 'ok',
        'operator': _operator_dict(operator),
        'session': auth_session.to_dict(),
    })


@auth_bp.route('/logout', methods=['POST'])
@require_login
def logout():
    """Sign out; the till's store is dropped with its subscriptions."""
    get_identity().sign_out()
    return jsonify({'status': 'ok'})


@auth_bp.route('/session')
def current_session():
    """Present/absent session probe; also hands out the CSRF token."""
    auth_session = get_identity().current_session() if g.get('operator') else None
    return jsonify({
        'authenticated': auth_session is not None,
        'session': auth_session.to_dict() if auth_session else None,
        'operator': _operator_dict(g.operator) if auth_session else None,
        'csrf_token': generate_csrf(),
    })
