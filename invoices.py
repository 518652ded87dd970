import base64
import binascii
import logging
import re

import requests

logger = logging.getLogger(__name__)


class InvoiceFunctionError(Exception):
    pass


def monthly_salary(annual_salary):
    return annual_salary / 12


def build_invoice(form, annual_salary, bill_to, send_to):
    """Turn a validated InvoiceIn into the row stored in ``invoice_history``."""
    salary = monthly_salary(annual_salary)
    items = [{'description': item.description, 'amount': item.amount} for item in form.expenses]
    return {
        'invoice_number': form.invoice_number,
        'invoice_date': form.invoice_date,
        'monthly_salary': round(salary, 2),
        'total_amount': round(salary + sum(item['amount'] for item in items), 2),
        'notes': form.notes or None,
        'expenses': items or None,
        'bill_to': dict(bill_to),
        'send_to': dict(send_to),
    }


def next_invoice_number(last):
    """Increment the trailing number of the last invoice number, keeping any prefix and padding."""
    if not last:
        return "1"
    match = re.search(r'(\d+)$', str(last))
    if not match:
        return f"{last}-1"
    digits = match.group(1)
    return last[:match.start()] + str(int(digits) + 1).zfill(len(digits))


def to_function_payload(invoice, download_only=False):
    invoice_date = invoice['invoice_date']
    return {
        'invoiceNumber': invoice['invoice_number'],
        'invoiceDate': invoice_date.isoformat() if hasattr(invoice_date, 'isoformat') else invoice_date,
        'monthlySalary': invoice['monthly_salary'],
        'totalAmount': invoice['total_amount'],
        'expenses': invoice.get('expenses') or [],
        'notes': invoice.get('notes'),
        'billTo': invoice['bill_to'],
        'sendTo': invoice['send_to'],
        'downloadOnly': download_only,
    }


class InvoiceFunctionClient:
    def __init__(self, url, api_key=None, timeout=30.0, session=None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _invoke(self, payload):
        if not self.url:
            raise InvoiceFunctionError("INVOICE_FUNCTION_URL is not configured")
        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f'Bearer {self.api_key}'
            headers['apikey'] = self.api_key
        try:
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error("Invoice function request failed: %s", e)
            raise InvoiceFunctionError(f"Invoice function request failed: {e}") from e
        except ValueError as e:
            raise InvoiceFunctionError("Invoice function returned a non-JSON body") from e

    def download(self, invoice):
        """Return the rendered PDF as bytes."""
        body = self._invoke(to_function_payload(invoice, download_only=True))
        encoded = body.get('pdf') if isinstance(body, dict) else None
        if not encoded:
            raise InvoiceFunctionError("Invoice function response has no PDF")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvoiceFunctionError("Invoice function returned invalid base64") from e

    def send(self, invoice):
        body = self._invoke(to_function_payload(invoice))
        logger.info("Invoice %s sent", invoice['invoice_number'])
        return body
