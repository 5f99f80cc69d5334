# FILE: services/action_registry.py
"""
Action Registry: IntentKind -> executor.

dispatch() never raises. Backend failures come back as a displayable
"Something went wrong: ..." response without a payload.
"""

import logging
from typing import Dict

from core.intent import IntentKind, ParsedIntent
from executors.base import BaseExecutor
from executors.card import CreateVirtualCardExecutor, FreezeCardExecutor
from executors.cash import CashBalanceExecutor
from executors.conversation import HelpExecutor, UnknownExecutor
from executors.expense import ApproveExpenseExecutor
from executors.spend import SpendCategoryExecutor
from models.response import DispatchResponse
from services.finance_backend import FinanceBackend

logger = logging.getLogger("action_registry")


def failure_response(error: BaseException) -> DispatchResponse:
    detail = str(error) or type(error).__name__
    return DispatchResponse(response_text=f"Something went wrong: {detail}", failed=True)


class ActionRegistry:
    def __init__(self, backend: FinanceBackend, timeout: float = 30):
        self.backend = backend
        self._executors: Dict[IntentKind, BaseExecutor] = {
            IntentKind.CASH_BALANCE: CashBalanceExecutor(backend, timeout),
            IntentKind.SPEND_CATEGORY: SpendCategoryExecutor(backend, timeout),
            IntentKind.CARD_CREATE_VIRTUAL: CreateVirtualCardExecutor(backend, timeout),
            IntentKind.CARD_FREEZE: FreezeCardExecutor(backend, timeout),
            IntentKind.EXPENSE_APPROVE: ApproveExpenseExecutor(backend, timeout),
            IntentKind.SMALLTALK_HELP: HelpExecutor(),
            IntentKind.UNKNOWN: UnknownExecutor(),
        }

    def register(self, kind: IntentKind, executor: BaseExecutor) -> None:
        """Replace the executor for one intent kind."""
        self._executors[kind] = executor

    async def dispatch(self, intent: ParsedIntent) -> DispatchResponse:
        executor = self._executors.get(intent.kind) or self._executors[IntentKind.UNKNOWN]

        try:
            response = await executor.execute(intent)
            logger.info(f"[DISPATCH] kind={intent.kind.value}, text='{response.response_text[:120]}'")
            return response
        except Exception as e:
            logger.exception(f"[DISPATCH_ERROR] kind={intent.kind.value}, params={intent.params}")
            return failure_response(e)
