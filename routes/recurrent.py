from flask import Blueprint, request, current_app, jsonify
from auth_utils import login_required
from models import RecurrentExpense
from schemas import RecurrentExpenseIn, validate
import aggregates

recurrent_bp = Blueprint('recurrent', __name__, url_prefix='/recurrent-expenses')


@recurrent_bp.route('/')
@login_required
def index():
    rows = current_app.stores.recurrent_expenses.fetch_all()
    if request.args.get('hide_savings', '').lower() in ('1', 'true', 'yes'):
        rows = aggregates.filter_expenses(rows, hide_savings=True)
    rows = aggregates.filter_expenses(rows, search=request.args.get('search'))
    return jsonify({
        'recurrent_expenses': [RecurrentExpense.from_row(row).to_json() for row in rows],
        'total': aggregates.sum_amounts(rows),
    })


@recurrent_bp.route('/', methods=['POST'])
@login_required
def add_recurrent_expense():
    form = validate(RecurrentExpenseIn, request.get_json(silent=True))
    expense_id = current_app.stores.recurrent_expenses.insert(dict(form.model_dump(), currency_symbol='$'))
    return jsonify({'id': expense_id}), 201


@recurrent_bp.route('/<expense_id>', methods=['PUT'])
@login_required
def edit_recurrent_expense(expense_id):
    form = validate(RecurrentExpenseIn, request.get_json(silent=True))
    current_app.stores.recurrent_expenses.update(expense_id, form.model_dump())
    return jsonify({'id': expense_id})


@recurrent_bp.route('/<expense_id>', methods=['DELETE'])
@login_required
def delete_recurrent_expense(expense_id):
    if not current_app.stores.recurrent_expenses.delete(expense_id):
        return jsonify({'error': 'Recurrent expense not found'}), 404
    return '', 204
