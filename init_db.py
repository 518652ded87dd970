import argparse
import os
import uuid

import mysql.connector
from werkzeug.security import generate_password_hash

from config import Config

SCHEMA_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'schema.sql')


def connect():
    return mysql.connector.connect(
        host=Config.MYSQL_HOST,
        user=Config.MYSQL_USER,
        password=Config.MYSQL_PASSWORD,
        database=Config.MYSQL_DATABASE
    )


def init_db():
    conn = connect()
    try:
        with conn.cursor() as cur:
            with open(SCHEMA_PATH, 'r') as f:
                # Split SQL statements (MySQL requires single statements)
                for statement in f.read().split(';'):
                    if statement.strip():
                        cur.execute(statement)
            conn.commit()
    finally:
        conn.close()


def set_owner_password(name, password):
    """Store a hashed password for the budget owner, replacing any previous one."""
    conn = connect()
    try:
        with conn.cursor() as cur:
            cur.execute(
                "INSERT INTO budget (id, name, password) VALUES (%s, %s, %s) "
                "ON DUPLICATE KEY UPDATE password = VALUES(password)",
                (str(uuid.uuid4()), name, generate_password_hash(password))
            )
            conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the budget tables.")
    parser.add_argument('--owner', default=Config.BUDGET_OWNER)
    parser.add_argument('--password', help="set the owner's password after creating tables")
    args = parser.parse_args()

    init_db()
    if args.password:
        set_owner_password(args.owner, args.password)
