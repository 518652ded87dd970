import logging
from flask import Blueprint, current_app, jsonify
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_fixed
from auth_utils import current_state, login_required
from routes.budgets import current_budget
from store import StoreError
import aggregates

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__, url_prefix='')


def load_collections(stores):
    return {
        'expenses': stores.expenses.fetch_all(),
        'recurrent_expenses': stores.recurrent_expenses.fetch_all(),
        'income': stores.income.fetch_all(),
    }


def fetch_with_retry(fn, *args, delay=5.0):
    """Run ``fn`` and, if the database fails, try exactly once more after ``delay`` seconds."""
    retrying = Retrying(
        stop=stop_after_attempt(2),
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(StoreError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    return retrying(fn, *args)


@dashboard_bp.route('/')
@login_required
def index():
    data = fetch_with_retry(
        load_collections, current_app.stores,
        delay=current_app.config['FETCH_RETRY_DELAY_SECONDS'],
    )
    expenses = data['expenses']
    recurrent = data['recurrent_expenses']

    income = aggregates.total_income(data['income'])
    regular_total = aggregates.sum_amounts(expenses)
    recurrent_total = aggregates.sum_amounts(recurrent)
    total_expenses = regular_total + recurrent_total
    balance = income - total_expenses

    return jsonify({
        'currency': current_state().currency,
        'income': income,
        'income_by_currency': aggregates.income_by_currency(data['income']),
        'regular_expenses': regular_total,
        'recurrent_expenses': recurrent_total,
        'expenses': total_expenses,
        'balance': balance,
        'balance_negative': balance < 0,
        'amount_saved': aggregates.amount_saved(expenses),
        'bank_totals': aggregates.bank_totals(expenses),
        'category_totals': aggregates.category_totals(expenses, recurrent),
        'can_close_month': len(expenses) > 0,
    })


@dashboard_bp.route('/calculations')
@login_required
def calculations():
    stores = current_app.stores
    expenses = stores.expenses.fetch_all()
    recurrent = stores.recurrent_expenses.fetch_all()
    totals = aggregates.category_totals(expenses, recurrent)
    budgets = {
        group: aggregates.budget_status(current_budget(store).amount, totals, group)
        for group, store in stores.budgets.items()
    }
    return jsonify({
        'category_totals': totals,
        'budgets': budgets,
        'poll_interval': stores.cache.ttl,
    })
