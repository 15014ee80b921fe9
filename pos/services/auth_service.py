"""
Authentication service for operator accounts.

Handles operator registration, password checks and the sign-in session.
"""
import logging
import re
import threading
import uuid
from dataclasses import dataclass
from typing import Callable, List, Optional

from flask import session as flask_session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from pos.exceptions import BusinessLogicError, UnauthorizedError
from pos.models import Operator

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6

SIGNED_IN = 'SIGNED_IN'
SIGNED_OUT = 'SIGNED_OUT'


def is_valid_email(email: str) -> bool:
    """Validate email format."""
    return EMAIL_PATTERN.match(email or '') is not None


def find_operator_by_email(db_session, email: str) -> Optional[Operator]:
    return db_session.query(Operator).filter(
        func.lower(Operator.email) == (email or '').strip().lower()
    ).first()


def register_operator(db_session, email: str, password: str, full_name: Optional[str] = None) -> Operator:
    """
    Create an operator account.

    Raises:
        BusinessLogicError: invalid email, short password or email taken
    """
    email = (email or '').strip().lower()
    errors = []
    if not is_valid_email(email):
        errors.append('Email tidak valid.')
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f'Kata sandi minimal {MIN_PASSWORD_LENGTH} karakter.')
    if errors:
        raise BusinessLogicError(' '.join(errors))

    if find_operator_by_email(db_session, email):
        raise BusinessLogicError('Email sudah terdaftar.')

    operator = Operator(email=email, full_name=(full_name or '').strip() or None, active=True)
    operator.set_password(password)
    db_session.add(operator)
    try:
        db_session.commit()
    except IntegrityError as e:
        db_session.rollback()
        logger.error(f"Error registering operator (IntegrityError): {e}")
        raise BusinessLogicError('Email sudah terdaftar.')

    logger.info(f"Operator registered: {email}")
    return operator


def authenticate(db_session, email: str, password: str) -> Operator:
    """
    Check credentials.

    Raises:
        UnauthorizedError: unknown email, wrong password or inactive account
    """
    operator = find_operator_by_email(db_session, email)
    if not operator or not operator.active or not operator.check_password(password or ''):
        logger.warning(f"Failed login attempt for {email}")
        raise UnauthorizedError('Email atau kata sandi salah.')
    return operator


@dataclass(frozen=True)
class AuthSession:
    """What the till knows about the signed-in operator."""
    user_id: int
    email: str
    till_id: str

    def to_dict(self) -> dict:
        return {'user_id': self.user_id, 'email': self.email, 'till_id': self.till_id}


AuthCallback = Callable[[str, Optional[AuthSession]], None]


class IdentityProvider:
    """
    Session-backed identity for the till.

    The signed-in operator lives in the Flask session cookie. Listeners
    registered with on_auth_state_change hear about every sign-in and
    sign-out.
    """

    def __init__(self):
        self._callbacks: List[AuthCallback] = []
        self._lock = threading.Lock()

    def current_session(self) -> Optional[AuthSession]:
        """Present when an operator is signed in, None otherwise."""
        user_id = flask_session.get('user_id')
        till_id = flask_session.get('till_id')
        if not user_id or not till_id:
            return None
        return AuthSession(user_id=user_id, email=flask_session.get('email', ''), till_id=till_id)

    def sign_in(self, operator: Operator) -> AuthSession:
        """Open a new till; a till already open in this session is closed first."""
        previous = self.current_session()
        flask_session.clear()
        if previous:
            logger.info(f"Till {previous.till_id} replaced by a new sign-in")
            self._emit(SIGNED_OUT, previous)
        flask_session['user_id'] = operator.id
        flask_session['email'] = operator.email
        flask_session['till_id'] = uuid.uuid4().hex
        flask_session.permanent = True
        auth_session = self.current_session()
        logger.info(f"Operator {operator.email} signed in on till {auth_session.till_id}")
        self._emit(SIGNED_IN, auth_session)
        return auth_session

    def sign_out(self) -> None:
        auth_session = self.current_session()
        flask_session.clear()
        if auth_session:
            logger.info(f"Operator {auth_session.email} signed out of till {auth_session.till_id}")
        self._emit(SIGNED_OUT, auth_session)

    def on_auth_state_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
        return unsubscribe

    def _emit(self, event: str, auth_session: Optional[AuthSession]) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback(event, auth_session)


def init_identity(app) -> IdentityProvider:
    provider = IdentityProvider()
    app.extensions['identity'] = provider
    return provider


def get_identity() -> IdentityProvider:
    from flask import current_app
    provider = current_app.extensions.get('identity')
    if provider is None:
        raise RuntimeError("Identity provider not initialized.")
    return provider
