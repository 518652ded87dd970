"""
Budget Planner Test Suite

- test_aggregates.py: totals, category grouping, filters
- test_store.py: table access against a mocked MySQL pool, collection cache
- test_schemas.py: request payload validation
- test_month_close.py: month close steps, resume and idempotence
- test_invoices.py: invoice building and the invoice function client
- test_auth.py: login, logout, session preferences, CSRF
- test_expenses.py, test_recurrent_expenses.py, test_income.py: CRUD routes
- test_budgets.py, test_dashboard.py, test_history.py, test_shared_expenses.py: remaining routes
- test_init_db.py: schema setup and the owner password

Run all tests:
    pytest tests/

Run with verbose output:
    pytest tests/ -v
"""
