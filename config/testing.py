import os

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", "password"),
    "database": os.getenv("DB_NAME", "marketplace_test"),
    "pool_size": 2,
    "statement_timeout_ms": 2000,
    "connect_timeout": 5,
}

HOST = "127.0.0.1"
PORT = 8081

DEBUG = False
TESTING = True

CORS_ALLOW_ORIGIN = "*"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SUPER_ADMIN_EMAIL = "admin@marketplace.test"
SUPER_ADMIN_PASSWORD = "changeme123"
