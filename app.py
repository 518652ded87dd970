import logging
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException
from config import Config
from invoices import InvoiceFunctionError
from month_close import MonthAlreadyClosed, MonthCloseError, MonthCloseInProgress
from schemas import ValidationFailed
from store import RecordNotFound, StoreError
from routes.auth import auth_bp
from routes.dashboard import dashboard_bp
from routes.expenses import expenses_bp
from routes.recurrent import recurrent_bp
from routes.income import income_bp
from routes.budgets import budgets_bp
from routes.history import history_bp
from routes.shared import shared_bp
from routes.invoices import invoices_bp

logger = logging.getLogger(__name__)

csrf = CSRFProtect()


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )


def register_error_handlers(app):
    @app.errorhandler(ValidationFailed)
    def validation_failed(e):
        return jsonify({'error': 'Invalid request', 'details': e.details}), 400

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(RecordNotFound)
    def not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(StoreError)
    def store_failed(e):
        logger.exception("Database request failed")
        return jsonify({'error': f"Database request failed ({e.operation} on {e.table})"}), 502

    @app.errorhandler(MonthAlreadyClosed)
    def already_closed(e):
        return jsonify({'error': str(e)}), 409

    @app.errorhandler(MonthCloseInProgress)
    def close_in_progress(e):
        return jsonify({'error': str(e), 'run_id': e.run_id}), 409

    @app.errorhandler(MonthCloseError)
    def close_failed(e):
        return jsonify({
            'error': 'Failed to close month',
            'step': e.step,
            'run_id': e.run_id,
            'retry': 'POST /history/close again to resume',
        }), 500

    @app.errorhandler(InvoiceFunctionError)
    def invoice_function_failed(e):
        return jsonify({'error': str(e)}), 502


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.config.get("SECRET_KEY"):
        import secrets
        app.config["SECRET_KEY"] = secrets.token_hex(32)

    config_class.init_db(app)
    csrf.init_app(app)
    register_error_handlers(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(recurrent_bp)
    app.register_blueprint(income_bp)
    app.register_blueprint(budgets_bp)
    app.register_blueprint(history_bp)
    app.register_blueprint(shared_bp)
    app.register_blueprint(invoices_bp)

    return app


if __name__ == '__main__':
    create_app().run()
