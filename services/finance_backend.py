# FILE: services/finance_backend.py
"""
Finance backend collaborators.

- FinanceBackend: the five async operations the assistant relies on
- MockFinanceBackend: canned data with simulated latency (demo / tests)
- HttpFinanceBackend: live REST endpoints via httpx
"""

import asyncio
import logging
import random
import string
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from models.finance import (
    CardFreezeResult,
    CashBalance,
    ExpenseApproval,
    SpendByCategory,
    SpendSlice,
    VirtualCard,
)

logger = logging.getLogger("finance_backend")


class FinanceBackendError(Exception):
    """Any non-success signal from the finance backend."""


class FinanceBackend(ABC):
    """
    Base contract for finance backends.
    Every call may fail with FinanceBackendError.
    """

    @abstractmethod
    async def get_cash_balance(self) -> CashBalance:
        pass

    @abstractmethod
    async def get_spend_by_category(self, window_days: int = 30) -> SpendByCategory:
        pass

    @abstractmethod
    async def create_virtual_card(self, team: str, limit: float, currency: str = "USD") -> VirtualCard:
        pass

    @abstractmethod
    async def freeze_card(self, last4: str) -> CardFreezeResult:
        pass

    @abstractmethod
    async def approve_expense(self, report_id: str) -> ExpenseApproval:
        pass

    async def aclose(self) -> None:
        return None


# -----------------------------
# Mock backend
# -----------------------------
MOCK_SPEND = [
    ("SaaS", 182300),
    ("Travel", 124500),
    ("Meals", 54320),
    ("Marketing", 225100),
    ("Vendors", 334000),
]


class MockFinanceBackend(FinanceBackend):
    """In-process backend returning fixed demo data after a short delay."""

    def __init__(self, latency_scale: float = 1.0, rng: Optional[random.Random] = None):
        self.latency_scale = latency_scale
        self.rng = rng or random.Random()

    async def _sleep(self, ms: int) -> None:
        if self.latency_scale > 0:
            await asyncio.sleep(ms / 1000 * self.latency_scale)

    async def get_cash_balance(self) -> CashBalance:
        await self._sleep(600)
        return CashBalance(currency="USD", available=48234567.12, yesterday_change_pct=0.8)

    async def get_spend_by_category(self, window_days: int = 30) -> SpendByCategory:
        await self._sleep(700)
        return SpendByCategory(
            window_days=window_days,
            data=[SpendSlice(name=name, value=value) for name, value in MOCK_SPEND],
        )

    async def create_virtual_card(self, team: str, limit: float, currency: str = "USD") -> VirtualCard:
        await self._sleep(800)
        suffix = "".join(self.rng.choices(string.ascii_lowercase + string.digits, k=8))
        return VirtualCard(
            id=f"card_{suffix}",
            team=team,
            limit=limit,
            currency=currency,
            last4=str(self.rng.randint(1000, 9999)),
            status="active",
        )

    async def freeze_card(self, last4: str) -> CardFreezeResult:
        await self._sleep(500)
        return CardFreezeResult(last4=last4, status="frozen")

    async def approve_expense(self, report_id: str) -> ExpenseApproval:
        await self._sleep(600)
        return ExpenseApproval(report_id=report_id, status="approved")


# -----------------------------
# Live backend
# -----------------------------
class HttpFinanceBackend(FinanceBackend):
    """REST client for the live finance API."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout)

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise FinanceBackendError(
                f"{method} {path} failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise FinanceBackendError(f"{method} {path} failed: {e}") from e

        if not isinstance(body, dict):
            raise FinanceBackendError(f"{method} {path} returned an unexpected body")
        if body.get("ok") is False:
            raise FinanceBackendError(body.get("error") or f"{method} {path} was rejected")
        return body

    def _validate(self, model, body: Dict[str, Any]):
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise FinanceBackendError(f"Malformed {model.__name__} response") from e

    async def get_cash_balance(self) -> CashBalance:
        body = await self._request("GET", "/api/brex/cash-balance")
        return self._validate(CashBalance, body)

    async def get_spend_by_category(self, window_days: int = 30) -> SpendByCategory:
        body = await self._request("GET", "/api/brex/spend-by-category", params={"days": window_days})
        return self._validate(SpendByCategory, body)

    async def create_virtual_card(self, team: str, limit: float, currency: str = "USD") -> VirtualCard:
        body = await self._request(
            "POST",
            "/api/brex/virtual-cards",
            json={"team": team, "limit": limit, "currency": currency},
        )
        return self._validate(VirtualCard, body)

    async def freeze_card(self, last4: str) -> CardFreezeResult:
        body = await self._request("POST", "/api/brex/cards/freeze", json={"last4": last4})
        return self._validate(CardFreezeResult, body)

    async def approve_expense(self, report_id: str) -> ExpenseApproval:
        body = await self._request("POST", "/api/brex/expenses/approve", json={"reportId": report_id})
        return self._validate(ExpenseApproval, body)

    async def aclose(self) -> None:
        await self.client.aclose()


def build_backend() -> FinanceBackend:
    """Pick the backend from configuration."""
    from config import FINANCE_API_BASE_URL, FINANCE_API_TIMEOUT, MOCK_LATENCY_SCALE, MOCK_MODE

    if MOCK_MODE:
        logger.info("Using mock finance backend")
        return MockFinanceBackend(latency_scale=MOCK_LATENCY_SCALE)

    logger.info(f"Using live finance backend at {FINANCE_API_BASE_URL}")
    return HttpFinanceBackend(FINANCE_API_BASE_URL, timeout=FINANCE_API_TIMEOUT)
