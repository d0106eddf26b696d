#!/usr/bin/env python
"""
    Book Schema for Stacks, the catalog view of a title and its copies.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class Book(BaseModel):

    id: int
    title: str
    author: str
    total_copies: int
    available_copies: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "title": "Dune",
                "author": "Frank Herbert",
                "total_copies": 2,
                "available_copies": 1,
                "created_at": "2024-01-01T12:00:00Z"
            }
        }
