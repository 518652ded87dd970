import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: str

    @classmethod
    def from_row(cls, row):
        return cls.model_validate(row)

    def to_json(self):
        return self.model_dump(mode='json')


class Expense(Record):
    name: str
    category: str
    amount: float
    date: dt.date
    bank_account: Optional[str] = None
    is_deleted: bool = False
    notes: Optional[str] = None
    is_paid: bool = False
    savings_account: Optional[str] = None
    currency_symbol: Optional[str] = '$'
    created_at: Optional[dt.datetime] = None


class RecurrentExpense(Record):
    name: str
    category: str
    amount: float
    bank_account: Optional[str] = None
    is_deleted: bool = False
    currency_symbol: Optional[str] = '$'
    created_at: Optional[dt.datetime] = None


class Income(Record):
    amount: float
    category: Optional[str] = None
    tag: Optional[str] = None
    currency: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


class HistoryRecord(Record):
    month: str
    year: int
    income: Optional[float] = None
    expenses: Optional[float] = None
    remaining_balance: float
    amount_saved: Optional[float] = None
    total_apple: Optional[float] = None
    total_chase: Optional[float] = None
    total_euro: Optional[float] = None
    created_at: Optional[dt.datetime] = None


class Budget(Record):
    amount: float = 0.0
    updated_at: Optional[dt.datetime] = None


class SharedExpense(Record):
    name: str
    amount: float
    created_at: Optional[dt.datetime] = None


class InvoiceLineItem(BaseModel):
    description: str
    amount: float


class Invoice(Record):
    invoice_number: str
    invoice_date: dt.date
    monthly_salary: float
    total_amount: float
    notes: Optional[str] = None
    expenses: Optional[List[InvoiceLineItem]] = None
    bill_to: dict
    send_to: dict
    created_at: Optional[dt.datetime] = None


class MonthCloseRun(Record):
    month: str
    year: int
    status: str
    current_step: Optional[str] = None
    completed_steps: Optional[List[str]] = None
    snapshot: Optional[dict] = None
    error: Optional[str] = None
    started_at: dt.datetime
    updated_at: dt.datetime
