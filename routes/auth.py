import logging
from flask import Blueprint, request, current_app, session, jsonify
from flask_wtf.csrf import generate_csrf
from auth_utils import current_state, login_required, validate_password
from schemas import LoginIn, PreferencesIn, validate

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/csrf')
def csrf_token():
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
def login():
    form = validate(LoginIn, request.get_json(silent=True))
    owner = current_app.config['BUDGET_OWNER']

    if not validate_password(current_app.stores, form.password, owner):
        logger.info("Rejected login for %s", owner)
        return jsonify({'error': 'Invalid password'}), 401

    state = current_state()
    state.authenticated = True
    state.save(session)
    return jsonify({'authenticated': True, 'currency': state.currency})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'authenticated': False})


@auth_bp.route('/preferences', methods=['GET', 'POST'])
@login_required
def preferences():
    state = current_state()
    if request.method == 'POST':
        form = validate(PreferencesIn, request.get_json(silent=True))
        state.currency = form.currency
        state.save(session)
    return jsonify({'currency': state.currency})


@auth_bp.route('/status')
def status():
    state = current_state()
    return jsonify({'authenticated': state.authenticated, 'currency': state.currency})
