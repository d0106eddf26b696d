#!/usr/bin/env python

"""
    Core module for Stacks, db & circulation

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from stacks.core import db as database
from stacks.core import models

db = database.init()

__all__ = ["db", "models"]
