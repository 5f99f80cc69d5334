from abc import ABC, abstractmethod
from asyncio import wait_for, TimeoutError
from typing import Awaitable, TypeVar

from core.intent import ParsedIntent
from models.response import DispatchResponse
from services.finance_backend import FinanceBackend, FinanceBackendError

T = TypeVar("T")


class BaseExecutor(ABC):
    """
    Base contract for all executors.
    Executors take a ParsedIntent and return a DispatchResponse.
    No routing, no parsing, no timeline writes here.
    """

    @abstractmethod
    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        pass


class BackendExecutor(BaseExecutor):
    """
    Executors that call the finance backend.
    Backend failures propagate; the registry turns them into replies.
    """

    def __init__(self, backend: FinanceBackend, timeout: float = 30):
        self.backend = backend
        self.timeout = timeout

    async def call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await wait_for(awaitable, timeout=self.timeout)
        except TimeoutError:
            raise FinanceBackendError(f"{operation} timed out")
