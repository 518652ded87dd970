import json
import logging
import threading
import time
import uuid
from contextlib import contextmanager
from decimal import Decimal

import mysql.connector

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A request against the database failed."""

    def __init__(self, table, operation, cause=None):
        self.table = table
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} on {table} failed: {cause}")


class RecordNotFound(Exception):
    def __init__(self, table, record_id):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table} row {record_id} not found")


class CollectionCache:
    """Fetched collections keyed by table name, expiring after ``ttl`` seconds."""

    def __init__(self, ttl=30.0, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, rows = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[key]
                return None
            return [dict(row) for row in rows]

    def put(self, key, rows):
        with self._lock:
            self._entries[key] = (self._clock(), [dict(row) for row in rows])

    def invalidate(self, *keys):
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)


class TableStore:
    def __init__(self, pool, table, columns, order_by=None, soft_delete=False,
                 json_columns=(), bool_columns=(), cache=None):
        self.pool = pool
        self.table = table
        self.columns = tuple(columns)
        self.order_by = order_by
        self.soft_delete = soft_delete
        self.json_columns = frozenset(json_columns)
        self.bool_columns = frozenset(bool_columns) | ({'is_deleted'} if soft_delete else set())
        self.cache = cache

    @contextmanager
    def _cursor(self, operation):
        try:
            conn = self.pool.get_connection()
        except mysql.connector.Error as e:
            logger.error("Could not get a connection for %s on %s: %s", operation, self.table, e)
            raise StoreError(self.table, operation, e) from e
        try:
            with conn.cursor(dictionary=True) as cur:
                yield conn, cur
        except mysql.connector.Error as e:
            logger.error("%s on %s failed: %s", operation, self.table, e)
            raise StoreError(self.table, operation, e) from e
        finally:
            conn.close()

    def _check_columns(self, data):
        unknown = set(data) - set(self.columns)
        if unknown:
            raise ValueError(f"Unknown columns for {self.table}: {sorted(unknown)}")

    def _encode(self, column, value):
        if column in self.json_columns and value is not None:
            return json.dumps(value)
        return value

    def _decode(self, row):
        row = dict(row)
        for key, value in row.items():
            if isinstance(value, Decimal):
                row[key] = float(value)
            elif key in self.bool_columns and value is not None:
                row[key] = bool(value)
            elif key in self.json_columns and isinstance(value, (str, bytes, bytearray)):
                row[key] = json.loads(value)
        return row

    def _select(self, where=None, params=(), operation='select'):
        sql = f"SELECT * FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        if self.order_by:
            sql += f" ORDER BY {self.order_by} DESC"
        with self._cursor(operation) as (conn, cur):
            cur.execute(sql, params)
            return [self._decode(row) for row in cur.fetchall()]

    def invalidate(self):
        if self.cache is not None:
            self.cache.invalidate(self.table)

    def fetch_all(self, use_cache=True):
        """Return the full active set, newest first."""
        if use_cache and self.cache is not None:
            cached = self.cache.get(self.table)
            if cached is not None:
                return cached
        if self.soft_delete:
            rows = self._select("is_deleted = FALSE", operation='fetch_all')
        else:
            rows = self._select(operation='fetch_all')
        if self.cache is not None:
            self.cache.put(self.table, rows)
        return rows

    def fetch_one(self, record_id):
        rows = self._select("id = %s", (record_id,), operation='fetch_one')
        return rows[0] if rows else None

    def find(self, **criteria):
        """Equality lookup over any columns, archived rows included."""
        self._check_columns(criteria)
        where = " AND ".join(f"{column} = %s" for column in criteria)
        params = tuple(self._encode(c, v) for c, v in criteria.items())
        return self._select(where or None, params, operation='find')

    def insert(self, data):
        data = dict(data)
        data.setdefault('id', str(uuid.uuid4()))
        if self.soft_delete:
            data.setdefault('is_deleted', False)
        self._check_columns(data)
        columns = ", ".join(data)
        placeholders = ", ".join(["%s"] * len(data))
        with self._cursor('insert') as (conn, cur):
            cur.execute(
                f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})",
                tuple(self._encode(c, v) for c, v in data.items())
            )
            conn.commit()
        self.invalidate()
        return data['id']

    def update(self, record_id, data):
        self._check_columns(data)
        if not data:
            return
        assignments = ", ".join(f"{column} = %s" for column in data)
        with self._cursor('update') as (conn, cur):
            cur.execute(f"SELECT id FROM {self.table} WHERE id = %s", (record_id,))
            if not cur.fetchone():
                raise RecordNotFound(self.table, record_id)
            cur.execute(
                f"UPDATE {self.table} SET {assignments} WHERE id = %s",
                tuple(self._encode(c, v) for c, v in data.items()) + (record_id,)
            )
            conn.commit()
        self.invalidate()

    def delete(self, record_id):
        with self._cursor('delete') as (conn, cur):
            cur.execute(f"DELETE FROM {self.table} WHERE id = %s", (record_id,))
            deleted = cur.rowcount
            conn.commit()
        self.invalidate()
        return deleted

    def delete_all(self):
        with self._cursor('delete_all') as (conn, cur):
            cur.execute(f"DELETE FROM {self.table}")
            deleted = cur.rowcount
            conn.commit()
        self.invalidate()
        return deleted

    def archive_active(self):
        """Soft-delete every active row. Running it twice changes nothing."""
        if not self.soft_delete:
            raise TypeError(f"{self.table} has no is_deleted column")
        with self._cursor('archive_active') as (conn, cur):
            cur.execute(f"UPDATE {self.table} SET is_deleted = TRUE WHERE is_deleted = FALSE")
            archived = cur.rowcount
            conn.commit()
        self.invalidate()
        return archived


class SingletonStore(TableStore):
    """A table holding one row with id ``default``, such as a category budget."""

    ROW_ID = 'default'

    def __init__(self, pool, table, cache=None):
        super().__init__(pool, table, ('id', 'amount', 'created_at', 'updated_at'), cache=cache)

    def get(self):
        row = self.fetch_one(self.ROW_ID)
        if row is None:
            return {'id': self.ROW_ID, 'amount': 0.0}
        return row

    def set(self, amount):
        with self._cursor('upsert') as (conn, cur):
            cur.execute(
                f"INSERT INTO {self.table} (id, amount) VALUES (%s, %s) "
                "ON DUPLICATE KEY UPDATE amount = VALUES(amount)",
                (self.ROW_ID, amount)
            )
            conn.commit()
        self.invalidate()

    def reset(self):
        """Set the amount back to zero. Returns False if the row does not exist yet."""
        try:
            self.update(self.ROW_ID, {'amount': 0})
        except RecordNotFound:
            return False
        return True


EXPENSE_COLUMNS = ('id', 'name', 'category', 'amount', 'date', 'bank_account', 'is_deleted',
                   'notes', 'is_paid', 'savings_account', 'currency_symbol', 'created_at')
RECURRENT_EXPENSE_COLUMNS = ('id', 'name', 'category', 'amount', 'bank_account', 'is_deleted',
                             'currency_symbol', 'created_at')
INCOME_COLUMNS = ('id', 'amount', 'category', 'tag', 'currency', 'created_at', 'updated_at')
HISTORY_COLUMNS = ('id', 'month', 'year', 'income', 'expenses', 'remaining_balance', 'amount_saved',
                   'total_apple', 'total_chase', 'total_euro', 'created_at')
SAVINGS_COLUMNS = ('id', 'account', 'amount', 'bank_account', 'date', 'is_deleted', 'created_at')
SHARED_EXPENSE_COLUMNS = ('id', 'name', 'amount', 'created_at')
INVOICE_COLUMNS = ('id', 'invoice_number', 'invoice_date', 'monthly_salary', 'total_amount', 'notes',
                   'expenses', 'bill_to', 'send_to', 'created_at')
CLOSE_RUN_COLUMNS = ('id', 'month', 'year', 'status', 'current_step', 'completed_steps', 'snapshot',
                     'error', 'started_at', 'updated_at')
CREDENTIAL_COLUMNS = ('id', 'name', 'password', 'created_at')


class Stores:
    """One store per table, sharing a single cache."""

    def __init__(self, pool, ttl=30.0):
        self.cache = CollectionCache(ttl)
        self.expenses = TableStore(pool, 'expenses', EXPENSE_COLUMNS, order_by='date', soft_delete=True,
                                   bool_columns=('is_paid',), cache=self.cache)
        self.recurrent_expenses = TableStore(pool, 'recurrent_expenses', RECURRENT_EXPENSE_COLUMNS,
                                             order_by='created_at', soft_delete=True, cache=self.cache)
        self.income = TableStore(pool, 'income', INCOME_COLUMNS, order_by='created_at', cache=self.cache)
        self.history = TableStore(pool, 'history', HISTORY_COLUMNS, order_by='created_at', cache=self.cache)
        self.savings = TableStore(pool, 'savings', SAVINGS_COLUMNS, order_by='date', soft_delete=True,
                                  cache=self.cache)
        self.shared_expenses = TableStore(pool, 'shared_expenses', SHARED_EXPENSE_COLUMNS,
                                          order_by='created_at', cache=self.cache)
        self.invoices = TableStore(pool, 'invoice_history', INVOICE_COLUMNS, order_by='invoice_date',
                                   json_columns=('expenses', 'bill_to', 'send_to'), cache=self.cache)
        self.close_runs = TableStore(pool, 'month_close_run', CLOSE_RUN_COLUMNS, order_by='started_at',
                                     json_columns=('completed_steps', 'snapshot'), cache=self.cache)
        self.credentials = TableStore(pool, 'budget', CREDENTIAL_COLUMNS)
        self.budgets = {
            'entertainment': SingletonStore(pool, 'entertainment_budget', cache=self.cache),
            'groceries': SingletonStore(pool, 'groceries_budget', cache=self.cache),
        }
