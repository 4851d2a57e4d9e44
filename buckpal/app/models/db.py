from __future__ import annotations
from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import BigInteger, Column
from sqlmodel import Field, SQLModel

class Account(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    owner_name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

class Activity(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    owner_account_id: int = Field(foreign_key="account.id", index=True)
    source_account_id: int = Field(foreign_key="account.id")
    target_account_id: int = Field(foreign_key="account.id")
    amount: int = Field(sa_column=Column(BigInteger, nullable=False))
