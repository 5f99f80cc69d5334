# FILE: models/finance.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List


class _BackendModel(BaseModel):
    # Backend payloads arrive in camelCase; Python code uses snake_case
    model_config = ConfigDict(populate_by_name=True)


# -----------------------------
# Cash
# -----------------------------
class CashBalance(_BackendModel):
    currency: str = Field(default="USD")
    available: float = Field(..., description="Available cash in `currency`")
    yesterday_change_pct: float = Field(0.0, alias="yesterdayChangePct")


# -----------------------------
# Spend
# -----------------------------
class SpendSlice(_BackendModel):
    name: str
    value: float


class SpendByCategory(_BackendModel):
    window_days: int = Field(..., alias="windowDays")
    data: List[SpendSlice] = Field(default_factory=list)

    def total(self) -> float:
        return sum(s.value for s in self.data)


# -----------------------------
# Cards
# -----------------------------
class VirtualCard(_BackendModel):
    id: str
    team: str
    limit: float
    currency: str = Field(default="USD")
    last4: str
    status: str


class CardFreezeResult(_BackendModel):
    last4: str
    status: str


# -----------------------------
# Expenses
# -----------------------------
class ExpenseApproval(_BackendModel):
    report_id: str = Field(..., alias="reportId")
    status: str
