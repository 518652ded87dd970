from flask import Blueprint, request, current_app, jsonify
from auth_utils import login_required
from models import Income
from schemas import IncomeIn, validate
import aggregates

income_bp = Blueprint('income', __name__, url_prefix='/income')


@income_bp.route('/')
@login_required
def index():
    incomes = current_app.stores.income.fetch_all()
    return jsonify({
        'income': [Income.from_row(row).to_json() for row in incomes],
        'total': aggregates.total_income(incomes),
        'by_currency': aggregates.income_by_currency(incomes),
    })


@income_bp.route('/', methods=['POST'])
@login_required
def add_income():
    form = validate(IncomeIn, request.get_json(silent=True))
    income_id = current_app.stores.income.insert(form.model_dump())
    return jsonify({'id': income_id}), 201


@income_bp.route('/<income_id>', methods=['PUT'])
@login_required
def edit_income(income_id):
    form = validate(IncomeIn, request.get_json(silent=True))
    current_app.stores.income.update(income_id, form.model_dump())
    return jsonify({'id': income_id})


@income_bp.route('/<income_id>', methods=['DELETE'])
@login_required
def delete_income(income_id):
    if not current_app.stores.income.delete(income_id):
        return jsonify({'error': 'Income not found'}), 404
    return '', 204
