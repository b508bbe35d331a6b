"""
Centralized logging service for OrderDesk.
Provides structured logging with database storage and easy integration.
"""

import json
from datetime import datetime
from flask import request, has_request_context
from .database import Database
from .config import get_config_value


def _logs_db_path():
    return get_config_value('LOGS_DB')


class LoggingService:
    """Centralized logging service for application-wide logging"""

    @staticmethod
    def _ensure_logs_table():
        """Ensure the app_logs table exists"""
        try:
            db_path = _logs_db_path()
            Database.ensure_parent_dir(db_path)
            with Database.connect(db_path) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS app_logs (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        level TEXT NOT NULL,
                        source TEXT NOT NULL,
                        message TEXT NOT NULL,
                        details TEXT,
                        ip_address TEXT,
                        user_agent TEXT,
                        request_path TEXT,
                        user_id TEXT
                    )
                """)

                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_timestamp
                    ON app_logs(timestamp DESC)
                """)
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_logs_source
                    ON app_logs(source)
                """)

                conn.commit()
        except Exception as e:
            print(f"Failed to ensure logs table: {e}")

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None, None

        try:
            ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
            if ip_address and ',' in ip_address:
                ip_address = ip_address.split(',')[0].strip()

            user_agent = request.headers.get('User-Agent', '')
            request_path = request.path

            return ip_address, user_agent, request_path
        except Exception:
            return None, None, None

    @staticmethod
    def log(level, source, message, details=None, user_id=None):
        """
        Log a message to the database

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (orders, store, subscriptions, etc.)
            message (str): Main log message
            details (str/dict): Additional details (will be JSON-encoded if dict)
            user_id (str): Optional user identifier
        """
        try:
            LoggingService._ensure_logs_table()

            ip_address, user_agent, request_path = LoggingService._get_request_context()

            if isinstance(details, dict):
                details = json.dumps(details, indent=2, default=str)

            timestamp = datetime.now().isoformat()

            with Database.connect(_logs_db_path()) as conn:
                cursor = conn.cursor()
                cursor.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, user_agent, request_path, user_id)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    timestamp, level.upper(), source, message, details,
                    ip_address, user_agent, request_path, user_id
                ))
                conn.commit()

        except Exception as e:
            # Fallback to console logging if database fails
            print(f"[{datetime.now().isoformat()}] [{level.upper()}] [{source}] {message}")
            if details:
                print(f"Details: {details}")
            print(f"Logging service error: {e}")

    @staticmethod
    def info(source, message, details=None, user_id=None):
        """Log info message"""
        LoggingService.log('INFO', source, message, details, user_id)

    @staticmethod
    def log_user_action(source, action, user_id=None, details=None):
        """Log admin actions (mark delivered, etc.)"""
        LoggingService.info(source, f"User action: {action}", details, user_id)

    @staticmethod
    def recent_logs(source=None, limit=50):
        """Return the most recent log entries, newest first"""
        try:
            with Database.connect(_logs_db_path()) as conn:
                cursor = conn.cursor()
                if source:
                    cursor.execute("""
                        SELECT timestamp, level, source, message, details FROM app_logs
                        WHERE source = ?
                        ORDER BY id DESC LIMIT ?
                    """, (source, limit))
                else:
                    cursor.execute("""
                        SELECT timestamp, level, source, message, details FROM app_logs
                        ORDER BY id DESC LIMIT ?
                    """, (limit,))
                columns = ['timestamp', 'level', 'source', 'message', 'details']
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
        except Exception as e:
            print(f"Error reading logs: {e}")
            return []


def db_log(level, source, message, details=None, user_id=None):
    """Shortcut used by modules: db_log('error', 'orders', 'message', {...})"""
    LoggingService.log(level, source, message, details, user_id)

