import os
import mysql.connector
from mysql.connector import pooling
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv('SECRET_KEY')
    MYSQL_HOST = os.getenv('MYSQL_HOST')
    MYSQL_USER = os.getenv('MYSQL_USER')
    MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD')
    MYSQL_DATABASE = os.getenv('MYSQL_DATABASE', 'budget_db')
    MYSQL_POOL_SIZE = int(os.getenv('MYSQL_POOL_SIZE', '5'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Fetched collections are re-read at least this often
    CACHE_TTL_SECONDS = float(os.getenv('CACHE_TTL_SECONDS', '30'))
    FETCH_RETRY_DELAY_SECONDS = float(os.getenv('FETCH_RETRY_DELAY_SECONDS', '5'))
    MONTH_CLOSE_LOCK_SECONDS = int(os.getenv('MONTH_CLOSE_LOCK_SECONDS', '300'))

    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'USD')
    BUDGET_OWNER = os.getenv('BUDGET_OWNER', 'owner')

    INVOICE_FUNCTION_URL = os.getenv('INVOICE_FUNCTION_URL')
    INVOICE_FUNCTION_KEY = os.getenv('INVOICE_FUNCTION_KEY')
    INVOICE_FUNCTION_TIMEOUT = float(os.getenv('INVOICE_FUNCTION_TIMEOUT', '30'))
    ANNUAL_SALARY = float(os.getenv('ANNUAL_SALARY', '100000'))
    INVOICE_BILL_TO = {
        'name': os.getenv('INVOICE_BILL_TO_NAME', ''),
        'address': os.getenv('INVOICE_BILL_TO_ADDRESS', ''),
        'taxId': os.getenv('INVOICE_BILL_TO_TAX_ID', ''),
    }
    INVOICE_SEND_TO = {
        'recipientName': os.getenv('INVOICE_SEND_TO_NAME', ''),
        'recipientAddress': os.getenv('INVOICE_SEND_TO_ADDRESS', ''),
        'bankName': os.getenv('INVOICE_SEND_TO_BANK_NAME', ''),
        'bankAddress': os.getenv('INVOICE_SEND_TO_BANK_ADDRESS', ''),
        'accountNumber': os.getenv('INVOICE_SEND_TO_ACCOUNT_NUMBER', ''),
        'routingNumber': os.getenv('INVOICE_SEND_TO_ROUTING_NUMBER', ''),
        'swiftCode': os.getenv('INVOICE_SEND_TO_SWIFT_CODE', ''),
    }

    @staticmethod
    def init_db(app):
        from store import Stores

        app.db_pool = mysql.connector.pooling.MySQLConnectionPool(
            pool_name="budget_pool",
            pool_size=Config.MYSQL_POOL_SIZE,
            host=Config.MYSQL_HOST,
            user=Config.MYSQL_USER,
            password=Config.MYSQL_PASSWORD,
            database=Config.MYSQL_DATABASE
        )
        app.stores = Stores(app.db_pool, ttl=app.config['CACHE_TTL_SECONDS'])
