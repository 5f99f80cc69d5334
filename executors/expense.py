from core.intent import ParsedIntent
from executors.base import BackendExecutor
from models.response import DispatchResponse
from services.intent_parser import DEFAULT_REPORT_ID


class ApproveExpenseExecutor(BackendExecutor):
    """
    Executes expense.approve intents.
    """

    async def execute(self, intent: ParsedIntent) -> DispatchResponse:
        report_id = str(intent.params.get("reportId", DEFAULT_REPORT_ID))
        result = await self.call("Expense approval", self.backend.approve_expense(report_id))

        return DispatchResponse(
            response_text=f"Expense report {result.report_id} is {result.status}."
        )
