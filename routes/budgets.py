from flask import Blueprint, request, current_app, jsonify, abort
from auth_utils import login_required
from models import Budget
from schemas import BudgetIn, validate
import aggregates

budgets_bp = Blueprint('budgets', __name__, url_prefix='/budgets')


def _budget_store(group):
    store = current_app.stores.budgets.get(group)
    if store is None:
        abort(404)
    return store


def current_budget(store):
    return Budget.from_row(store.get())


@budgets_bp.route('/<group>')
@login_required
def show(group):
    store = _budget_store(group)
    stores = current_app.stores
    totals = aggregates.category_totals(stores.expenses.fetch_all(), stores.recurrent_expenses.fetch_all())
    status = aggregates.budget_status(current_budget(store).amount, totals, group)
    return jsonify(dict(status, group=group))


@budgets_bp.route('/<group>', methods=['PUT'])
@login_required
def update(group):
    store = _budget_store(group)
    form = validate(BudgetIn, request.get_json(silent=True))
    store.set(form.amount)
    return jsonify({'group': group, 'amount': form.amount})
