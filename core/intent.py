# core/intent.py
from enum import Enum
from typing import Dict, Union

from pydantic import BaseModel, ConfigDict, Field


class IntentKind(str, Enum):
    """
    Closed set of commands the assistant understands.
    UNKNOWN is the catch-all, so every utterance maps to some kind.
    """

    CASH_BALANCE = "cash.balance"
    SPEND_CATEGORY = "spend.category"
    CARD_CREATE_VIRTUAL = "card.create.virtual"
    CARD_FREEZE = "card.freeze"
    EXPENSE_APPROVE = "expense.approve"
    SMALLTALK_HELP = "smalltalk.help"
    UNKNOWN = "unknown"


ParamValue = Union[int, float, str]


class ParsedIntent(BaseModel):
    """
    A passive container that represents what the user wants.
    This does NOT execute logic.
    Params are always fully defaulted by the parser.
    """

    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    params: Dict[str, ParamValue] = Field(default_factory=dict)
