from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional
from datetime import datetime
from bson import ObjectId

class UserInDB(BaseModel):
    """Database representation of a marketplace user (owned by the accounts service)"""
    id: str = Field(..., alias="_id")
    name: str
    email: EmailStr
    role: str = "buyer"  # "buyer", "seller", "admin"
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator('id', mode='before')
    @classmethod
    def convert_object_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v
