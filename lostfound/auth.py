from flask import Blueprint, current_app, jsonify, request

from .errors import InvalidArgument
from .security import issue_token

auth = Blueprint('auth', __name__)


def _cookie_options():
    if current_app.config['IS_PRODUCTION']:
        return {'httponly': True, 'secure': True, 'samesite': 'None'}
    return {'httponly': True, 'secure': False, 'samesite': 'Lax'}


# -------------------------
# LOGIN
# -------------------------
@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = data.get('email') if isinstance(data, dict) else None
    if not isinstance(email, str) or not email.strip():
        raise InvalidArgument("Email is required")
    email = email.strip()

    ttl_hours = current_app.config['TOKEN_TTL_HOURS']
    token = issue_token(email, current_app.config['ACCESS_TOKEN_SECRET'], ttl_hours)

    response = jsonify({'success': True})
    response.set_cookie(
        current_app.config['TOKEN_COOKIE_NAME'],
        token,
        max_age=ttl_hours * 60 * 60,
        **_cookie_options()
    )
    current_app.logger.info("Issued token for %s", email)
    return response


# -------------------------
# LOGOUT
# -------------------------
@auth.route('/logout', methods=['POST'])
def logout():
    response = jsonify({'success': True})
    response.delete_cookie(current_app.config['TOKEN_COOKIE_NAME'], **_cookie_options())
    return response
