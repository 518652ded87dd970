import math

TRACKED_BANK_ACCOUNTS = {'total_apple': 'Apple', 'total_chase': 'Chase', 'total_euro': 'EURO'}
ENTERTAINMENT_CATEGORIES = ('entertainment', 'food', 'eating out')
GROCERIES_CATEGORIES = ('groceries',)
BUDGET_GROUPS = {'entertainment': ENTERTAINMENT_CATEGORIES, 'groceries': GROCERIES_CATEGORIES}
SAVINGS_CATEGORY = 'savings'


def _field(record, name, default=None):
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def to_amount(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def sum_amounts(records):
    return sum((to_amount(_field(r, 'amount')) for r in records), 0.0)


def category_totals(expenses, recurrent_expenses=()):
    """Sum amounts per lower-cased category, in first-seen order."""
    totals = {}
    for record in list(expenses) + list(recurrent_expenses):
        category = (_field(record, 'category') or '').lower()
        totals[category] = totals.get(category, 0.0) + to_amount(_field(record, 'amount'))
    return totals


def bank_account_total(records, bank_account):
    return sum_amounts(r for r in records if _field(r, 'bank_account') == bank_account)


def bank_totals(records):
    records = list(records)
    return {key: bank_account_total(records, account) for key, account in TRACKED_BANK_ACCOUNTS.items()}


def total_income(incomes):
    return sum_amounts(incomes)


def income_by_currency(incomes):
    totals = {'EUR': 0.0, 'USD': 0.0}
    for income in incomes:
        currency = _field(income, 'currency')
        if currency in totals:
            totals[currency] += to_amount(_field(income, 'amount'))
    return totals


def total_expenses(expenses, recurrent_expenses=()):
    return sum_amounts(expenses) + sum_amounts(recurrent_expenses)


def amount_saved(expenses):
    return sum_amounts(e for e in expenses if (_field(e, 'category') or '').lower() == SAVINGS_CATEGORY)


def balance(income, expenses, recurrent_expenses=()):
    return income - total_expenses(expenses, recurrent_expenses)


def category_group_total(totals, names):
    return sum((amount for category, amount in totals.items() if category in names), 0.0)


def remaining_budget(budget_amount, spent):
    return to_amount(budget_amount) - spent


def budget_status(budget_amount, totals, group):
    names = BUDGET_GROUPS[group]
    spent = category_group_total(totals, names)
    return {
        'budget': to_amount(budget_amount),
        'spent': spent,
        'remaining': remaining_budget(budget_amount, spent),
        'categories': {name: totals[name] for name in names if name in totals},
    }


def filter_expenses(expenses, search=None, bank_account=None, hide_savings=False):
    filtered = list(expenses)

    if bank_account and bank_account != 'all':
        filtered = [e for e in filtered if _field(e, 'bank_account') == bank_account]

    if hide_savings:
        filtered = [e for e in filtered if (_field(e, 'category') or '').lower() != SAVINGS_CATEGORY]

    if search and search.strip():
        query = search.strip().lower()
        filtered = [
            e for e in filtered
            if query in (_field(e, 'name') or '').lower()
            or query in (_field(e, 'category') or '').lower()
            or query in str(_field(e, 'amount'))
            or query in (_field(e, 'bank_account') or '').lower()
        ]

    return filtered
