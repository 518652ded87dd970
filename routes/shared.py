from flask import Blueprint, request, current_app, jsonify
from auth_utils import login_required
from models import SharedExpense
from schemas import SharedExpenseIn, validate
import aggregates

shared_bp = Blueprint('shared', __name__, url_prefix='/shared-expenses')


@shared_bp.route('/')
@login_required
def index():
    rows = current_app.stores.shared_expenses.fetch_all()
    search = (request.args.get('search') or '').strip().lower()
    if search:
        rows = [r for r in rows if search in r['name'].lower() or search in str(r['amount'])]
    return jsonify({
        'shared_expenses': [SharedExpense.from_row(row).to_json() for row in rows],
        'total': aggregates.sum_amounts(rows),
    })


@shared_bp.route('/', methods=['POST'])
@login_required
def add_shared_expense():
    form = validate(SharedExpenseIn, request.get_json(silent=True))
    expense_id = current_app.stores.shared_expenses.insert(form.model_dump())
    return jsonify({'id': expense_id}), 201


@shared_bp.route('/', methods=['DELETE'])
@login_required
def clear_shared_expenses():
    cleared = current_app.stores.shared_expenses.delete_all()
    return jsonify({'cleared': cleared})
