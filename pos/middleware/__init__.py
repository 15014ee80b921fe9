"""Middleware for authentication context."""
from functools import wraps
from flask import session, g, jsonify
from pos.database import db_session
from pos.exceptions import LoginRequiredError
from pos.models import Operator
from pos.services.auth_service import get_identity


def load_operator():
    """
    Load the signed-in operator into g (Flask's per-request global).

    Called before each request. Sets g.operator, g.user_id and g.till_id
    when authenticated; a session pointing at a missing or inactive operator
    is signed out, which also closes its till.
    """
    g.operator = None
    g.user_id = None
    g.till_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    operator = db_session.query(Operator).filter_by(id=user_id, active=True).first()
    if operator is None:
        get_identity().sign_out()
        return

    g.operator = operator
    g.user_id = operator.id
    g.till_id = session.get('till_id')


def require_login(f):
    """
    Decorator: Require an operator to be signed in.

    Answers 401 with a JSON body instead of redirecting; the till UI shows
    its own login screen.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('operator') is None or not g.get('till_id'):
            error = LoginRequiredError()
            return jsonify(error.to_dict()), error.status_code
        return f(*args, **kwargs)
    return decorated_function
