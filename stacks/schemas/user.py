from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from stacks.core.models import RoleEnum

class User(BaseModel):
    id: int
    name: str
    email: str
    role: RoleEnum
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
