"""Helpers shared by the JSON blueprints."""
from typing import Any, Dict, Optional

from flask import jsonify, request


def request_data() -> Dict[str, Any]:
    """Body of the request as a dict, JSON or form encoded."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def till_response(payload: Optional[Dict[str, Any]], store, status: int = 200):
    """
    JSON response carrying the notifications the till produced.

    Every action response includes ``notifications`` and the store
    ``revision`` so the client knows when to re-render.
    """
    body = dict(payload or {})
    body.setdefault('status', 'ok' if status < 400 else 'error')
    body['revision'] = store.revision
    body['notifications'] = [n.to_dict() for n in store.drain_notifications()]
    return jsonify(body), status
