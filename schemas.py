import datetime as dt
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models import TransactionType


PASSCODE_PATTERN = re.compile(r"[0-9]{6}")


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    amount_cents: int = Field(..., ge=0)
    type: TransactionType
    date: dt.date
    category: str = ""
    is_fixed: bool = False
    fixed_day: Optional[int] = Field(default=None, ge=1, le=31)
    recurrence_months: int = Field(default=0, ge=0)


class TransactionIn(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount_cents: int = Field(..., ge=0)
    type: TransactionType
    date: dt.date
    category: str = Field(default="", max_length=50)
    is_fixed: bool = False
    recurrence_months: int = Field(default=0, ge=0, le=600)


class Saving(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    amount_cents: int = Field(..., ge=0)
    date: dt.date


class SavingIn(BaseModel):
    amount_cents: int = Field(..., gt=0)
    date: dt.date


class WishlistItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    amount_cents: int = Field(..., ge=0)
    target_date: dt.date


class WishlistItemIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    amount_cents: int = Field(..., gt=0)
    target_date: dt.date


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class UserAccount(BaseModel):
    username: str
    passcode: str


class AccountIn(BaseModel):
    username: str
    passcode: str

    @field_validator("username")
    @classmethod
    def _username_length(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Username must have at least 2 characters")
        return value

    @field_validator("passcode")
    @classmethod
    def _passcode_digits(cls, value: str) -> str:
        if not PASSCODE_PATTERN.fullmatch(value):
            raise ValueError("Passcode must be exactly 6 digits")
        return value


class LoginIn(BaseModel):
    passcode: str


class PasscodeChangeIn(BaseModel):
    old_passcode: str
    new_passcode: str


class Backup(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: int = 1
    exported_at: Optional[dt.datetime] = None
    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    savings: list[Saving] = Field(default_factory=list)
    wishlist: list[WishlistItem] = Field(default_factory=list)
