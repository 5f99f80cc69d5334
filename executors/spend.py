from core.intent import ParsedIntent
from executors.base import BackendExecutor
from models.response import DispatchResponse
from services.formatting import fmt_money
from services.intent_parser import DEFAULT_SPEND_WINDOW_DAYS


class SpendCategoryExecutor(BackendExecutor):
    """
    Executes spend.category intents.
    The payload carries the raw slices for chart rendering.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        days = int(intent.params.get("days", DEFAULT_SPEND_WINDOW_DAYS))
        spend = await self.call("Spend lookup", self.backend.get_spend_by_category(days))
        total = spend.total()

        return DispatchResponse(
            response_text=(
                f"Total spend by category for the last {spend.window_days} days "
                f"is {fmt_money(total)}. I've charted the breakdown."
            ),
            payload={
                "kind": "spend.breakdown",
                "window_days": spend.window_days,
                "total": total,
                "categories": [s.model_dump() for s in spend.data],
            },
        )
