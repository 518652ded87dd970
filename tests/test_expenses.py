"""
Test suite for expense routes.
Tests cover expense CRUD, filtering and the shadow savings rows.
"""

import pytest

from tests.fakes import expense


@pytest.fixture
def seeded(stores):
    stores.expenses.insert(expense(12, 'Food', bank_account='Apple', name='Lunch', id='e1'))
    stores.expenses.insert(expense(50, 'Savings', bank_account='Chase', name='Transfer', id='e2'))
    stores.expenses.insert(expense(99, 'Travel', bank_account='EURO', name='Train', id='e3'))
    stores.savings.insert({'id': 'e2', 'account': 'HYSA', 'amount': 50, 'bank_account': 'Chase',
                           'date': '2024-10-05'})
    return stores


class TestExpenseList:
    """Test expense listing and filtering."""

    def test_list_returns_active_expenses(self, logged_in_client, seeded):
        """Archived expenses are not listed."""
        seeded.expenses.insert(expense(5, name='Old', is_deleted=True))

        body = logged_in_client.get('/expenses/').get_json()
        assert {e['name'] for e in body['expenses']} == {'Lunch', 'Transfer', 'Train'}
        assert body['total'] == pytest.approx(161)
        assert body['bank_accounts'] == ['Apple', 'Chase', 'EURO']

    def test_bank_filter(self, logged_in_client, seeded):
        body = logged_in_client.get('/expenses/?bank_account=EURO').get_json()
        assert [e['name'] for e in body['expenses']] == ['Train']
        # Bank account choices come from the unfiltered set
        assert len(body['bank_accounts']) == 3

    def test_hide_savings_and_search(self, logged_in_client, seeded):
        body = logged_in_client.get('/expenses/?hide_savings=true&search=tr').get_json()
        assert [e['name'] for e in body['expenses']] == ['Train']

    def test_store_failure_is_bad_gateway(self, logged_in_client, seeded):
        """A failing database read is reported, not shown as an empty list."""
        seeded.expenses.fail_on.add('fetch_all')
        response = logged_in_client.get('/expenses/')
        assert response.status_code == 502
        assert 'expenses' in response.get_json()['error']


class TestExpenseCreate:
    """Test adding expenses."""

    def test_add_expense(self, logged_in_client, stores):
        """A valid expense is stored with defaults filled in."""
        response = logged_in_client.post('/expenses/', json={
            'name': 'Coffee', 'category': 'Food', 'amount': 3.5, 'date': '2024-10-07',
        })

        assert response.status_code == 201
        row = stores.expenses.rows[0]
        assert row['id'] == response.get_json()['id']
        assert row['amount'] == 3.5
        assert row['bank_account'] == 'Betterment'
        assert row['currency_symbol'] == '$'
        assert row['is_deleted'] is False
        assert stores.savings.rows == []

    def test_savings_expense_creates_savings_row(self, logged_in_client, stores):
        """A savings expense gets a savings row with the same id."""
        response = logged_in_client.post('/expenses/', json={
            'name': 'Move to HYSA', 'category': 'Savings', 'amount': 200,
            'bank_account': 'Chase', 'savings_account': 'HYSA',
        })

        expense_id = response.get_json()['id']
        assert stores.savings.rows[0]['id'] == expense_id
        assert stores.savings.rows[0]['account'] == 'HYSA'
        assert stores.savings.rows[0]['amount'] == 200

    @pytest.mark.parametrize('payload', [
        {'name': 'Coffee', 'category': 'Food', 'amount': 0},
        {'name': 'Coffee', 'category': 'Food', 'amount': -3},
        {'name': '', 'category': 'Food', 'amount': 3},
        {'category': 'Food', 'amount': 3},
    ])
    def test_invalid_expense_rejected(self, logged_in_client, stores, payload):
        """Invalid payloads never reach the database."""
        response = logged_in_client.post('/expenses/', json=payload)
        assert response.status_code == 400
        assert stores.expenses.calls == []

    def test_non_object_body_rejected(self, logged_in_client):
        response = logged_in_client.post('/expenses/', json=[1, 2])
        assert response.status_code == 400


class TestExpenseEdit:
    """Test editing expenses."""

    def test_edit_keeps_unsent_fields(self, logged_in_client, seeded):
        seeded.expenses.update('e1', {'is_paid': True, 'notes': 'card'})

        response = logged_in_client.put('/expenses/e1', json={'name': 'Big lunch', 'category': 'Food', 'amount': 20})

        assert response.status_code == 200
        row = seeded.expenses.fetch_one('e1')
        assert row['name'] == 'Big lunch'
        assert row['amount'] == 20
        assert row['is_paid'] is True
        assert row['notes'] == 'card'

    def test_edit_missing_expense(self, logged_in_client, seeded):
        response = logged_in_client.put('/expenses/nope', json={'name': 'X', 'category': 'Food', 'amount': 1})
        assert response.status_code == 404

    def test_edit_into_savings_adds_savings_row(self, logged_in_client, seeded):
        logged_in_client.put('/expenses/e1', json={'name': 'Lunch', 'category': 'Savings', 'amount': 12})
        assert seeded.savings.fetch_one('e1') is not None

    def test_edit_out_of_savings_removes_savings_row(self, logged_in_client, seeded):
        logged_in_client.put('/expenses/e2', json={'name': 'Transfer', 'category': 'Gifts', 'amount': 50})
        assert seeded.savings.fetch_one('e2') is None

    def test_edit_savings_amount_updates_savings_row(self, logged_in_client, seeded):
        logged_in_client.put('/expenses/e2', json={'name': 'Transfer', 'category': 'Savings', 'amount': 75,
                                                   'bank_account': 'Chase'})
        assert seeded.savings.fetch_one('e2')['amount'] == 75

    def test_toggle_paid(self, logged_in_client, seeded):
        response = logged_in_client.patch('/expenses/e1/paid', json={'is_paid': True})
        assert response.get_json() == {'id': 'e1', 'is_paid': True}
        assert seeded.expenses.fetch_one('e1')['is_paid'] is True

    def test_update_notes(self, logged_in_client, seeded):
        logged_in_client.patch('/expenses/e1/notes', json={'notes': 'shared with Sam'})
        assert seeded.expenses.fetch_one('e1')['notes'] == 'shared with Sam'

    def test_blank_notes_are_cleared(self, logged_in_client, seeded):
        logged_in_client.patch('/expenses/e1/notes', json={'notes': '   '})
        assert seeded.expenses.fetch_one('e1')['notes'] is None


class TestExpenseDelete:

    def test_delete_expense_and_savings_row(self, logged_in_client, seeded):
        response = logged_in_client.delete('/expenses/e2')
        assert response.status_code == 204
        assert seeded.expenses.fetch_one('e2') is None
        assert seeded.savings.fetch_one('e2') is None

    def test_delete_missing_expense(self, logged_in_client, seeded):
        response = logged_in_client.delete('/expenses/missing')
        assert response.status_code == 404
