"""The signed-in user, as handed over by the authentication service."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


class Customer(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    id: str = Field(min_length=1)
    email: str
    name: str = ""
    role: Role = Role.CUSTOMER.value
    phone: str = ""
    avatar: str | None = None
    username: str | None = None
