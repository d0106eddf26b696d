from pydantic import BaseModel
from typing import Optional

class UserRequest(BaseModel):
    name: str
    email: str
    role: str = "student"

class BookRequest(BaseModel):
    title: str
    author: str
    total_copies: int

class BorrowRequest(BaseModel):
    user_id: Optional[int] = None
    book_id: int
