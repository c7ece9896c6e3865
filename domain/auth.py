"""Domain Entities - Auth"""
from pydantic import BaseModel, Field, validator
from uuid import UUID, uuid4
from datetime import datetime
from typing import List, Optional

from domain.enums import UserRole
from domain.value_objects import Address

MAX_RECENT_SEARCHES = 5


class User(BaseModel):
    """User Entity"""
    user_id: UUID = Field(default_factory=uuid4)
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    image: Optional[str] = None
    role: UserRole = UserRole.USER
    phone: Optional[str] = None
    address: Optional[Address] = None
    recent_searched_cities: List[str] = []
    disabled: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        from_attributes = True

    @validator('recent_searched_cities')
    def keep_newest_unique_cities(cls, v):
        return list(dict.fromkeys(v))[:MAX_RECENT_SEARCHES]

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def with_recent_search(self, city: str) -> "User":
        """Copy with city pushed to the front of the recent searches"""
        if city in self.recent_searched_cities:
            return self
        cities = [city] + self.recent_searched_cities
        return self.model_copy(update={"recent_searched_cities": cities[:MAX_RECENT_SEARCHES]})


class UserInDB(User):
    """User with hashed password for DB storage"""
    hashed_password: str
