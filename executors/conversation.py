from core.intent import ParsedIntent
from executors.base import BaseExecutor
from models.response import DispatchResponse

HELP_TEXT = (
    "You can ask: 'cash balance', 'spend by category last 30 days', "
    "'create a virtual card for Sales with limit 2000 USD', "
    "'freeze card ending 1234', or 'approve expense report RPT-7711'."
)

UNKNOWN_TEXT = "Sorry, I didn't catch that. Try 'cash balance' or 'spend by category'."


class HelpExecutor(BaseExecutor):
    """
    smalltalk.help: fixed list of example commands, no backend call.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        return DispatchResponse(response_text=HELP_TEXT)


class UnknownExecutor(BaseExecutor):
    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        return DispatchResponse(response_text=UNKNOWN_TEXT)
