import logging
from flask import Blueprint, request, current_app, jsonify, Response
from auth_utils import login_required
from invoices import InvoiceFunctionClient, build_invoice, next_invoice_number
from models import Invoice
from schemas import InvoiceIn, validate

logger = logging.getLogger(__name__)

invoices_bp = Blueprint('invoices', __name__, url_prefix='/invoices')


def function_client():
    config = current_app.config
    return InvoiceFunctionClient(
        config.get('INVOICE_FUNCTION_URL'),
        api_key=config.get('INVOICE_FUNCTION_KEY'),
        timeout=config.get('INVOICE_FUNCTION_TIMEOUT', 30.0),
    )


def _get_invoice(invoice_id):
    invoice = current_app.stores.invoices.fetch_one(invoice_id)
    if invoice is None:
        return None, (jsonify({'error': 'Invoice not found'}), 404)
    return invoice, None


def _latest_invoice_number(rows):
    if not rows:
        return None
    newest = max(rows, key=lambda row: str(row.get('created_at') or ''))
    return newest['invoice_number']


@invoices_bp.route('/')
@login_required
def index():
    rows = current_app.stores.invoices.fetch_all()
    return jsonify({'invoices': [Invoice.from_row(row).to_json() for row in rows]})


@invoices_bp.route('/next-number')
@login_required
def next_number():
    last = _latest_invoice_number(current_app.stores.invoices.fetch_all())
    return jsonify({'last': last, 'next': next_invoice_number(last)})


@invoices_bp.route('/', methods=['POST'])
@login_required
def create_invoice():
    form = validate(InvoiceIn, request.get_json(silent=True))
    config = current_app.config
    invoice = build_invoice(form, config['ANNUAL_SALARY'], config['INVOICE_BILL_TO'], config['INVOICE_SEND_TO'])
    invoice_id = current_app.stores.invoices.insert(invoice)
    logger.info("Saved invoice %s as %s", form.invoice_number, invoice_id)
    return jsonify(Invoice.from_row(dict(invoice, id=invoice_id)).to_json()), 201


@invoices_bp.route('/<invoice_id>/send', methods=['POST'])
@login_required
def send_invoice(invoice_id):
    invoice, error = _get_invoice(invoice_id)
    if error:
        return error
    result = function_client().send(invoice)
    return jsonify({'sent': True, 'result': result})


@invoices_bp.route('/<invoice_id>/pdf')
@login_required
def download_invoice(invoice_id):
    invoice, error = _get_invoice(invoice_id)
    if error:
        return error
    pdf = function_client().download(invoice)
    filename = f"Invoice-{invoice['invoice_number']}.pdf"
    return Response(
        pdf,
        mimetype='application/pdf',
        headers={'Content-Disposition': f'attachment; filename="{filename}"'},
    )
