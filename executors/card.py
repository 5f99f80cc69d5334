from core.intent import ParsedIntent
from executors.base import BackendExecutor
from models.response import DispatchResponse
from services.formatting import fmt_number
from services.intent_parser import (
    DEFAULT_CARD_LIMIT,
    DEFAULT_CURRENCY,
    DEFAULT_LAST4,
    DEFAULT_TEAM,
)


class CreateVirtualCardExecutor(BackendExecutor):
    """
    Executes card.create.virtual intents.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        team = str(intent.params.get("team", DEFAULT_TEAM))
        limit = intent.params.get("limit", DEFAULT_CARD_LIMIT)
        currency = str(intent.params.get("currency", DEFAULT_CURRENCY))

        card = await self.call(
            "Card creation",
            self.backend.create_virtual_card(team, limit, currency),
        )

        return DispatchResponse(
            response_text=(
                f"Created a {currency} {fmt_number(limit)} virtual card "
                f"for {team}, ending in {card.last4}."
            ),
            payload={
                "kind": "card.created",
                "card_id": card.id,
                "status": card.status,
                "last4": card.last4,
            },
        )


class FreezeCardExecutor(BackendExecutor):
    """
    Executes card.freeze intents.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        last4 = str(intent.params.get("last4", DEFAULT_LAST4))
        result = await self.call("Card freeze", self.backend.freeze_card(last4))

        return DispatchResponse(
            response_text=f"Card ending in {result.last4} is now {result.status}."
        )
