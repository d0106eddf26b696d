#!/usr/bin/env python

"""
    Configurations for Stacks

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os
from decimal import Decimal


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
SCHEME = 'http'
HOST = os.environ.get('STACKS_HOST', 'localhost')
PORT = int(os.environ.get('STACKS_PORT', 8080))
WORKERS = int(os.environ.get('STACKS_WORKERS', 1))
DEBUG = bool(int(os.environ.get('STACKS_DEBUG', 0)))
LOG_LEVEL = os.environ.get('STACKS_LOG_LEVEL', 'info')
STACKS_API_URL = os.environ.get('STACKS_API_URL', f"{SCHEME}://{HOST}:{PORT}/v1/api")
STACKS_HTTP_HEADERS = {"User-Agent": "StacksClient/1.0"}

# Circulation rules
LOAN_PERIOD_DAYS = int(os.environ.get('STACKS_LOAN_PERIOD_DAYS', 14))
FINE_RATE = Decimal(os.environ.get('STACKS_FINE_RATE', '0.50'))
LOCK_TIMEOUT = float(os.environ.get('STACKS_LOCK_TIMEOUT', 5.0))

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'library_db'),
}

# Database configuration
DB_URI = (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

__all__ = [
    'SCHEME', 'HOST', 'PORT', 'DEBUG', 'OPTIONS', 'DB_URI', 'DB_CONFIG', 'TESTING',
    'LOAN_PERIOD_DAYS', 'FINE_RATE', 'LOCK_TIMEOUT', 'STACKS_API_URL',
]
