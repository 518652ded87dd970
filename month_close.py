"""Closing a month: snapshot totals into history and start the next month clean."""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional

import aggregates
from store import StoreError

logger = logging.getLogger(__name__)

STEPS = (
    'snapshot',
    'archive_expenses',
    'archive_savings',
    'record_history',
    'reset_budget',
    'carry_over',
)

FINISH = 'finish'

IN_PROGRESS = 'in_progress'
FAILED = 'failed'
COMPLETED = 'completed'

CARRY_OVER_NAME = "Negative Balance Repaid"
CARRY_OVER_CATEGORY = "Personal"
CARRY_OVER_BANK_ACCOUNT = "Apple"


class MonthAlreadyClosed(Exception):
    def __init__(self, month, year):
        self.month = month
        self.year = year
        super().__init__(f"{month} {year} has already been closed")


class MonthCloseInProgress(Exception):
    def __init__(self, month, year, run_id):
        self.month = month
        self.year = year
        self.run_id = run_id
        super().__init__(f"Closing {month} {year} is already in progress")


class MonthCloseError(Exception):
    """A step failed. Calling close again for the same period resumes the run."""

    def __init__(self, step, run_id, cause):
        self.step = step
        self.run_id = run_id
        self.cause = cause
        super().__init__(f"Month close failed at step '{step}': {cause}")


@dataclass
class MonthCloseResult:
    run_id: str
    month: str
    year: int
    snapshot: dict
    history: Optional[dict] = None
    carry_over_expense_id: Optional[str] = None
    resumed: bool = False
    archived: dict = field(default_factory=dict)


def resolve_period(month=None, year=None, today=None):
    """Fill in the current month name and year where they are not given."""
    today = today or date.today()
    return (month or calendar.month_name[today.month]), (year or today.year)


def carry_over_note(month, year):
    return f"Carry-over from {month} {year}"


def compute_snapshot(expenses, recurrent_expenses, incomes):
    income = aggregates.total_income(incomes)
    totals = {
        'income': income,
        'expenses': aggregates.total_expenses(expenses, recurrent_expenses),
        'amount_saved': aggregates.amount_saved(expenses),
        'remaining_balance': aggregates.balance(income, expenses, recurrent_expenses),
    }
    totals.update(aggregates.bank_totals(expenses))
    return totals


class MonthCloseWorkflow:
    def __init__(self, stores, lock_seconds=300, today=date.today, now=datetime.now):
        self.stores = stores
        self.lock_seconds = lock_seconds
        self._today = today
        self._now = now

    def close(self, month=None, year=None):
        month, year = resolve_period(month, year, self._today())
        run, resumed = self._start_run(month, year)
        completed = list(run.get('completed_steps') or [])
        state = {
            'month': month,
            'year': year,
            'snapshot': run.get('snapshot'),
            'archived': {},
            'carry_over_expense_id': None,
        }

        if resumed:
            logger.info("Resuming month close %s for %s %s after %s",
                        run['id'], month, year, completed or 'no steps')

        for step in STEPS:
            if step in completed:
                continue
            logger.info("Month close %s: starting %s", run['id'], step)
            try:
                getattr(self, f'_{step}')(state)
                # A step that ran but was not recorded is simply run again on resume
                self.stores.close_runs.update(run['id'], {
                    'current_step': step,
                    'completed_steps': completed + [step],
                    'snapshot': state['snapshot'],
                    'updated_at': self._now(),
                })
            except Exception as e:
                self._fail(run['id'], step, e)
            completed.append(step)

        try:
            self.stores.close_runs.update(run['id'], {
                'status': COMPLETED,
                'error': None,
                'updated_at': self._now(),
            })
        except StoreError as e:
            self._fail(run['id'], FINISH, e)
        logger.info("Month close %s completed for %s %s", run['id'], month, year)

        history = self.stores.history.find(month=month, year=year)
        carry_over_id = state['carry_over_expense_id']
        if carry_over_id is None:
            existing = self._find_carry_over(month, year)
            carry_over_id = existing['id'] if existing else None

        return MonthCloseResult(
            run_id=run['id'],
            month=month,
            year=year,
            snapshot=state['snapshot'],
            history=history[0] if history else None,
            carry_over_expense_id=carry_over_id,
            resumed=resumed,
            archived=state['archived'],
        )

    def _start_run(self, month, year):
        runs = self.stores.close_runs.find(month=month, year=year)
        now = self._now()
        if not runs:
            run_id = self.stores.close_runs.insert({
                'month': month,
                'year': year,
                'status': IN_PROGRESS,
                'completed_steps': [],
                'started_at': now,
                'updated_at': now,
            })
            return {'id': run_id, 'completed_steps': [], 'snapshot': None}, False

        run = runs[0]
        if run['status'] == COMPLETED:
            raise MonthAlreadyClosed(month, year)
        if run['status'] == IN_PROGRESS and now - run['updated_at'] < timedelta(seconds=self.lock_seconds):
            raise MonthCloseInProgress(month, year, run['id'])

        self.stores.close_runs.update(run['id'], {'status': IN_PROGRESS, 'updated_at': now})
        return run, True

    def _fail(self, run_id, step, error):
        logger.error("Month close %s failed at %s: %s", run_id, step, error)
        self._mark_failed(run_id, step, error)
        raise MonthCloseError(step, run_id, error) from error

    def _mark_failed(self, run_id, step, error):
        try:
            self.stores.close_runs.update(run_id, {
                'status': FAILED,
                'current_step': step,
                'error': str(error),
                'updated_at': self._now(),
            })
        except StoreError:
            # The original failure is re-raised by the caller
            logger.exception("Could not record failure of month close %s", run_id)

    def _find_carry_over(self, month, year):
        rows = self.stores.expenses.find(name=CARRY_OVER_NAME, notes=carry_over_note(month, year))
        return rows[0] if rows else None

    # Steps

    def _snapshot(self, state):
        expenses = self.stores.expenses.fetch_all(use_cache=False)
        recurrent = self.stores.recurrent_expenses.fetch_all(use_cache=False)
        incomes = self.stores.income.fetch_all(use_cache=False)
        state['snapshot'] = compute_snapshot(expenses, recurrent, incomes)
        logger.info("Snapshot for %s %s: %s", state['month'], state['year'], state['snapshot'])

    def _archive_expenses(self, state):
        state['archived']['expenses'] = self.stores.expenses.archive_active()

    def _archive_savings(self, state):
        state['archived']['savings'] = self.stores.savings.archive_active()

    def _record_history(self, state):
        snapshot = state['snapshot']
        values = {
            'income': snapshot['income'],
            'expenses': snapshot['expenses'],
            'amount_saved': snapshot['amount_saved'],
            'remaining_balance': snapshot['remaining_balance'],
            'total_apple': snapshot['total_apple'],
            'total_chase': snapshot['total_chase'],
            'total_euro': snapshot['total_euro'],
        }
        existing = self.stores.history.find(month=state['month'], year=state['year'])
        if existing:
            self.stores.history.update(existing[0]['id'], values)
            logger.info("Updated history %s for %s %s", existing[0]['id'], state['month'], state['year'])
        else:
            history_id = self.stores.history.insert(dict(values, month=state['month'], year=state['year']))
            logger.info("Recorded history %s for %s %s", history_id, state['month'], state['year'])

    def _reset_budget(self, state):
        # Groceries keeps its amount across months
        try:
            if not self.stores.budgets['entertainment'].reset():
                logger.info("No entertainment budget row to reset")
        except StoreError as e:
            logger.warning("Could not reset entertainment budget: %s", e)

    def _carry_over(self, state):
        remaining = state['snapshot']['remaining_balance']
        if not remaining < 0:
            return
        existing = self._find_carry_over(state['month'], state['year'])
        if existing:
            state['carry_over_expense_id'] = existing['id']
            return
        state['carry_over_expense_id'] = self.stores.expenses.insert({
            'name': CARRY_OVER_NAME,
            'category': CARRY_OVER_CATEGORY,
            'amount': abs(remaining),
            'date': self._today(),
            'bank_account': CARRY_OVER_BANK_ACCOUNT,
            'notes': carry_over_note(state['month'], state['year']),
            'currency_symbol': '$',
        })
        logger.info("Carried over %.2f into next month as expense %s",
                    abs(remaining), state['carry_over_expense_id'])
