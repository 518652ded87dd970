import logging
from dataclasses import asdict, dataclass
from functools import wraps

from flask import current_app, jsonify, session
from werkzeug.security import check_password_hash

from store import StoreError

logger = logging.getLogger(__name__)

SESSION_KEY = 'budget_session'
CURRENCIES = ('USD', 'EUR')


@dataclass
class SessionState:
    """What the browser used to keep in local storage, now in the signed session cookie."""

    authenticated: bool = False
    currency: str = 'USD'

    @classmethod
    def load(cls, store, default_currency='USD'):
        raw = store.get(SESSION_KEY)
        if not isinstance(raw, dict):
            return cls(currency=default_currency)
        currency = raw.get('currency')
        return cls(
            authenticated=raw.get('authenticated') is True,
            currency=currency if currency in CURRENCIES else default_currency,
        )

    def save(self, store):
        store[SESSION_KEY] = asdict(self)


def current_state():
    return SessionState.load(session, current_app.config.get('DEFAULT_CURRENCY', 'USD'))


def validate_password(stores, password, name):
    try:
        rows = stores.credentials.find(name=name)
    except StoreError as e:
        logger.error("Error validating password: %s", e)
        return False
    if not rows:
        logger.warning("No budget owner named %r", name)
        return False
    return check_password_hash(rows[0]['password'], password)


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_state().authenticated:
            return jsonify({'error': 'Authentication required'}), 401
        return fn(*args, **kwargs)
    return wrapper
