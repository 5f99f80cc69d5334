from core.intent import ParsedIntent
from executors.base import BackendExecutor
from models.response import DispatchResponse
from services.formatting import fmt_money


class CashBalanceExecutor(BackendExecutor):
    """
    Executes cash.balance intents.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        balance = await self.call("Cash balance lookup", self.backend.get_cash_balance())

        available = fmt_money(balance.available, balance.currency)
        change = balance.yesterday_change_pct
        arrow = "↑" if change >= 0 else "↓"

        return DispatchResponse(
            response_text=(
                f"Available cash balance is {available} "
                f"({arrow} {abs(change)}% since yesterday)."
            ),
            payload={
                "kind": "cash.summary",
                "available": balance.available,
                "currency": balance.currency,
                "status": "All accounts healthy" if change >= 0 else "Attention needed",
                "change_pct": change,
            },
        )
