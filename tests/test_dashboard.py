"""
Test suite for the dashboard summary and calculations.
"""

import pytest
from unittest.mock import MagicMock

from routes.dashboard import fetch_with_retry
from store import StoreError
from tests.conftest import login_session
from tests.fakes import FakeSingleton, expense


@pytest.fixture
def seeded(stores):
    stores.income.insert({'amount': 100, 'currency': 'USD'})
    stores.expenses.insert(expense(50, 'Savings', bank_account='Chase'))
    stores.expenses.insert(expense(30, 'Food', bank_account='Apple'))
    return stores


class TestSummary:
    """Test the dashboard totals."""

    def test_summary_totals(self, logged_in_client, seeded):
        """Income 100 with expenses 80, of which 50 saved, leaves 20."""
        body = logged_in_client.get('/').get_json()

        assert body['income'] == pytest.approx(100)
        assert body['expenses'] == pytest.approx(80)
        assert body['amount_saved'] == pytest.approx(50)
        assert body['balance'] == pytest.approx(20)
        assert body['balance_negative'] is False
        assert body['bank_totals'] == {'total_apple': 30.0, 'total_chase': 50.0, 'total_euro': 0.0}
        assert body['can_close_month'] is True

    def test_negative_balance_flag(self, logged_in_client, seeded):
        seeded.recurrent_expenses.insert(expense(60, 'Rent'))
        body = logged_in_client.get('/').get_json()
        assert body['recurrent_expenses'] == pytest.approx(60)
        assert body['balance'] == pytest.approx(-40)
        assert body['balance_negative'] is True

    def test_empty_month_cannot_be_closed(self, logged_in_client):
        body = logged_in_client.get('/').get_json()
        assert body['can_close_month'] is False
        assert body['balance'] == 0

    def test_currency_preference_is_reported(self, client_no_csrf, seeded):
        login_session(client_no_csrf, currency='EUR')
        assert client_no_csrf.get('/').get_json()['currency'] == 'EUR'


class TestRetry:
    """A failed load is retried exactly once."""

    def test_retry_recovers(self):
        fn = MagicMock(side_effect=[StoreError('expenses', 'fetch_all', 'timeout'), {'ok': True}])
        assert fetch_with_retry(fn, 'arg', delay=0) == {'ok': True}
        assert fn.call_count == 2
        fn.assert_called_with('arg')

    def test_second_failure_is_raised(self):
        fn = MagicMock(side_effect=StoreError('expenses', 'fetch_all', 'timeout'))
        with pytest.raises(StoreError):
            fetch_with_retry(fn, delay=0)
        assert fn.call_count == 2

    def test_other_errors_are_not_retried(self):
        fn = MagicMock(side_effect=ValueError('bad'))
        with pytest.raises(ValueError):
            fetch_with_retry(fn, delay=0)
        assert fn.call_count == 1

    def test_dashboard_reports_persistent_failure(self, logged_in_client, seeded):
        seeded.income.fail_on.add('fetch_all')
        response = logged_in_client.get('/')
        assert response.status_code == 502
        assert seeded.income.calls.count('fetch_all') == 2


class TestCalculations:

    def test_calculations(self, logged_in_client, stores):
        stores.budgets['groceries'] = FakeSingleton('groceries_budget', amount=100)
        stores.expenses.insert(expense(40, 'Groceries'))
        stores.expenses.insert(expense(10, 'Food'))

        body = logged_in_client.get('/calculations').get_json()
        assert body['category_totals'] == {'groceries': 40.0, 'food': 10.0}
        assert body['budgets']['groceries']['remaining'] == pytest.approx(60)
        assert body['budgets']['entertainment']['spent'] == pytest.approx(10)
        assert body['poll_interval'] == 30
