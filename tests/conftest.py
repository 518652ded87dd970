"""
Shared pytest fixtures for Budget Planner tests.
"""

import pytest
import os
import sys
from unittest.mock import MagicMock

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from tests.fakes import FakeStores  # noqa: E402


class TestConfig:
    """Test configuration that bypasses MySQL."""
    SECRET_KEY = 'test-secret-key-for-testing-only'
    TESTING = True
    WTF_CSRF_ENABLED = True
    SERVER_NAME = 'localhost'
    LOG_LEVEL = 'WARNING'
    CACHE_TTL_SECONDS = 30
    FETCH_RETRY_DELAY_SECONDS = 0
    MONTH_CLOSE_LOCK_SECONDS = 300
    DEFAULT_CURRENCY = 'USD'
    BUDGET_OWNER = 'owner'
    INVOICE_FUNCTION_URL = 'https://functions.example.test/send-invoice'
    INVOICE_FUNCTION_KEY = 'test-key'
    INVOICE_FUNCTION_TIMEOUT = 5
    ANNUAL_SALARY = 120000.0
    INVOICE_BILL_TO = {'name': 'Client AG', 'address': '1 Main St', 'taxId': 'CHE-1'}
    INVOICE_SEND_TO = {'recipientName': 'Owner', 'recipientAddress': '2 Side St', 'bankName': 'Bank',
                       'bankAddress': '3 Bank Rd', 'accountNumber': '123', 'routingNumber': '456',
                       'swiftCode': 'SWIFTX'}

    @staticmethod
    def init_db(app):
        """Mock DB initialization - no real MySQL needed."""
        app.db_pool = MagicMock()
        app.stores = FakeStores()


def make_mock_connection():
    """Create a mock MySQL connection with cursor context manager."""
    conn = MagicMock()
    cursor = MagicMock()
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn.cursor.return_value = cursor
    return conn, cursor


@pytest.fixture
def app():
    """Create application for testing."""
    from app import create_app
    application = create_app(config_class=TestConfig)
    application.config['WTF_CSRF_ENABLED'] = True
    yield application


@pytest.fixture
def app_no_csrf():
    """Create application for testing without CSRF protection."""
    from app import create_app
    application = create_app(config_class=TestConfig)
    application.config['WTF_CSRF_ENABLED'] = False
    yield application


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def client_no_csrf(app_no_csrf):
    """Create test client without CSRF."""
    return app_no_csrf.test_client()


@pytest.fixture
def stores(app_no_csrf):
    """The in-memory stores behind the no-CSRF app."""
    return app_no_csrf.stores


def login_session(client, currency='USD'):
    """Helper to set up a logged-in session."""
    with client.session_transaction() as sess:
        sess['budget_session'] = {'authenticated': True, 'currency': currency}


@pytest.fixture
def logged_in_client(client_no_csrf):
    """Client with an authenticated session."""
    login_session(client_no_csrf)
    return client_no_csrf
