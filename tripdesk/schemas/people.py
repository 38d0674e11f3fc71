from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class PersonIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    national_id: Optional[str] = Field(None, max_length=32)
    age: Optional[int] = Field(None, ge=0)
    phones: List[str] = Field(default_factory=list)


class PersonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    national_id: Optional[str] = None
    age: Optional[int] = None
    phones: List[str] = Field(default_factory=list)


class AddressIn(BaseModel):
    street: str = Field(..., min_length=1)
    number: Optional[str] = None
    neighborhood: Optional[str] = None
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: Optional[str] = None


class AddressOut(AddressIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class AffiliateIn(BaseModel):
    person_id: int


class AffiliateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    person: PersonOut
