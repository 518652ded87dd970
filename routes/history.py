import logging
from dataclasses import asdict
from flask import Blueprint, request, current_app, jsonify
from auth_utils import login_required
from models import HistoryRecord, MonthCloseRun
from month_close import MonthCloseWorkflow
from schemas import MonthCloseIn, validate

logger = logging.getLogger(__name__)

history_bp = Blueprint('history', __name__, url_prefix='/history')


@history_bp.route('/')
@login_required
def index():
    records = current_app.stores.history.fetch_all()
    search = (request.args.get('search') or '').strip().lower()
    if search:
        records = [r for r in records if search in r['month'].lower() or search in str(r['year'])]
    return jsonify({'history': [HistoryRecord.from_row(row).to_json() for row in records]})


@history_bp.route('/close', methods=['POST'])
@login_required
def close_month():
    form = validate(MonthCloseIn, request.get_json(silent=True))
    workflow = MonthCloseWorkflow(
        current_app.stores,
        lock_seconds=current_app.config['MONTH_CLOSE_LOCK_SECONDS'],
    )
    result = workflow.close(month=form.month, year=form.year)
    logger.info("Closed %s %s (run %s, resumed=%s)", result.month, result.year, result.run_id, result.resumed)

    body = asdict(result)
    if result.history is not None:
        body['history'] = HistoryRecord.from_row(result.history).to_json()
    if result.carry_over_expense_id:
        body['message'] = "Month closed with the negative balance added as an expense"
    else:
        body['message'] = "Month closed successfully"
    return jsonify(body), 200


@history_bp.route('/close-runs')
@login_required
def close_runs():
    runs = current_app.stores.close_runs.fetch_all(use_cache=False)
    return jsonify({'runs': [MonthCloseRun.from_row(row).to_json() for row in runs]})
