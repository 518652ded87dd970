import calendar
import datetime as dt
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

MONTH_NAMES = tuple(calendar.month_name)[1:]


class ValidationFailed(Exception):
    def __init__(self, errors):
        self.errors = errors
        super().__init__("Invalid request payload")

    @property
    def details(self):
        return [
            {'field': '.'.join(str(part) for part in error.get('loc', ())), 'message': error.get('msg')}
            for error in self.errors
        ]


class Payload(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)


def _round_amount(value):
    value = round(value, 2)
    if value <= 0:
        raise ValueError("amount must be at least 0.01")
    return value


Amount = Annotated[float, AfterValidator(_round_amount)]


class ExpenseDraft(Payload):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    amount: Amount = Field(gt=0)
    date: dt.date = Field(default_factory=dt.date.today)
    bank_account: str = 'Betterment'
    savings_account: Optional[str] = None
    notes: Optional[str] = None
    is_paid: bool = False

    @property
    def is_savings(self):
        return self.category.lower() == 'savings'

    def columns(self):
        # Edits leave fields the client did not send untouched
        data = self.model_dump(exclude={'kind', 'id'}, exclude_unset=self.kind == 'edit')
        data['currency_symbol'] = '$'
        return data


class NewExpense(ExpenseDraft):
    kind: Literal['new'] = 'new'


class ExpenseEdit(ExpenseDraft):
    kind: Literal['edit'] = 'edit'
    id: str


ExpenseForm = TypeAdapter(Annotated[Union[NewExpense, ExpenseEdit], Field(discriminator='kind')])


class RecurrentExpenseIn(Payload):
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    amount: Amount = Field(ge=0.01)
    bank_account: str = Field(min_length=1)


class IncomeIn(Payload):
    amount: Amount = Field(gt=0)
    category: Optional[str] = None
    tag: Optional[str] = None
    currency: Literal['USD', 'EUR'] = 'USD'


class BudgetIn(Payload):
    amount: float = Field(ge=0)


class PaidIn(Payload):
    is_paid: bool


class NotesIn(Payload):
    notes: Optional[str] = None


class SharedExpenseIn(Payload):
    name: str = Field(min_length=1)
    amount: Amount = Field(gt=0)


class LineItemIn(Payload):
    description: str = Field(min_length=1)
    amount: float = Field(ge=0)


class InvoiceIn(Payload):
    invoice_number: str = Field(min_length=1)
    invoice_date: dt.date
    notes: Optional[str] = None
    expenses: List[LineItemIn] = Field(default_factory=list)


class MonthCloseIn(Payload):
    month: Optional[Union[int, str]] = None
    year: Optional[int] = Field(default=None, ge=1900, le=9999)

    @field_validator('month')
    @classmethod
    def normalize_month(cls, value):
        """Accept 1-12 or a month name in any case; store the full English name."""
        if value is None:
            return None
        if isinstance(value, str) and value.isdigit():
            value = int(value)
        if isinstance(value, int):
            if not 1 <= value <= 12:
                raise ValueError("month must be between 1 and 12")
            return MONTH_NAMES[value - 1]
        for name in MONTH_NAMES:
            if value.lower() in (name.lower(), name[:3].lower()):
                return name
        raise ValueError(f"unknown month {value!r}")


class LoginIn(Payload):
    password: str = Field(min_length=1)


class PreferencesIn(Payload):
    currency: Literal['USD', 'EUR']


def validate(schema, data):
    """Validate ``data`` against a model class or TypeAdapter, raising ValidationFailed."""
    if data is None:
        data = {}
    try:
        if isinstance(schema, TypeAdapter):
            return schema.validate_python(data)
        return schema.model_validate(data)
    except ValidationError as e:
        raise ValidationFailed(e.errors(include_url=False)) from e
