import logging
from flask import Blueprint, request, current_app, jsonify
from auth_utils import login_required
from models import Expense
from schemas import ExpenseForm, ExpenseEdit, NotesIn, PaidIn, validate
import aggregates

logger = logging.getLogger(__name__)

expenses_bp = Blueprint('expenses', __name__, url_prefix='/expenses')


def _savings_row(expense_id, form):
    return {
        'id': expense_id,
        'account': form.savings_account or form.bank_account,
        'amount': form.amount,
        'bank_account': form.bank_account,
        'date': form.date,
    }


def save_expense(stores, form):
    """Insert a new expense or apply an edit, keeping the shadow savings row in step."""
    if isinstance(form, ExpenseEdit):
        stores.expenses.update(form.id, form.columns())
        if stores.savings.fetch_one(form.id) is not None:
            if form.is_savings:
                stores.savings.update(form.id, {k: v for k, v in _savings_row(form.id, form).items() if k != 'id'})
            else:
                stores.savings.delete(form.id)
        elif form.is_savings:
            stores.savings.insert(_savings_row(form.id, form))
        return form.id

    expense_id = stores.expenses.insert(form.columns())
    if form.is_savings:
        stores.savings.insert(_savings_row(expense_id, form))
    return expense_id


def _form_payload(**extra):
    body = request.get_json(silent=True)
    return dict(body if isinstance(body, dict) else {}, **extra)


def _truthy(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


@expenses_bp.route('/')
@login_required
def index():
    stores = current_app.stores
    expenses = stores.expenses.fetch_all()
    filtered = aggregates.filter_expenses(
        expenses,
        search=request.args.get('search'),
        bank_account=request.args.get('bank_account'),
        hide_savings=_truthy(request.args.get('hide_savings', 'false')),
    )
    bank_accounts = sorted({e['bank_account'] for e in expenses if e.get('bank_account')})
    return jsonify({
        'expenses': [Expense.from_row(row).to_json() for row in filtered],
        'total': aggregates.sum_amounts(filtered),
        'bank_accounts': bank_accounts,
    })


@expenses_bp.route('/', methods=['POST'])
@login_required
def add_expense():
    form = validate(ExpenseForm, _form_payload(kind='new'))
    expense_id = save_expense(current_app.stores, form)
    logger.info("Added expense %s (%s)", expense_id, form.category)
    return jsonify({'id': expense_id}), 201


@expenses_bp.route('/<expense_id>', methods=['PUT'])
@login_required
def edit_expense(expense_id):
    form = validate(ExpenseForm, _form_payload(kind='edit', id=expense_id))
    save_expense(current_app.stores, form)
    return jsonify({'id': expense_id})


@expenses_bp.route('/<expense_id>/paid', methods=['PATCH'])
@login_required
def toggle_paid(expense_id):
    form = validate(PaidIn, request.get_json(silent=True))
    current_app.stores.expenses.update(expense_id, {'is_paid': form.is_paid})
    return jsonify({'id': expense_id, 'is_paid': form.is_paid})


@expenses_bp.route('/<expense_id>/notes', methods=['PATCH'])
@login_required
def update_notes(expense_id):
    form = validate(NotesIn, request.get_json(silent=True))
    current_app.stores.expenses.update(expense_id, {'notes': form.notes or None})
    return jsonify({'id': expense_id, 'notes': form.notes or None})


@expenses_bp.route('/<expense_id>', methods=['DELETE'])
@login_required
def delete_expense(expense_id):
    stores = current_app.stores
    if not stores.expenses.delete(expense_id):
        return jsonify({'error': 'Expense not found'}), 404
    stores.savings.delete(expense_id)
    return '', 204
