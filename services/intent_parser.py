# FILE: services/intent_parser.py
"""
Rule-based intent parser.

- Ordered (predicate, extractor) rules, first match wins
- Every parameter is defaulted, so the result is always actionable
- No LLM calls, no I/O, never raises
"""

import re
from typing import Callable, Dict, List, NamedTuple, Optional

from core.intent import IntentKind, ParsedIntent, ParamValue

# -----------------------------
# Defaults
# -----------------------------
DEFAULT_SPEND_WINDOW_DAYS = 30
DEFAULT_TEAM = "General"
DEFAULT_CARD_LIMIT = 5000
DEFAULT_CURRENCY = "USD"
DEFAULT_LAST4 = "0000"
DEFAULT_REPORT_ID = "RPT-1234"

# Three-letter words that can follow a limit without being a currency code
_NOT_CURRENCY = {"for", "per", "and", "the", "with", "to"}

# -----------------------------
# Patterns
# -----------------------------
_cash_re = re.compile(r"cash|balance|how much (?:money|cash)|available")
_spend_re = re.compile(r"(?:spend|spending).*category|category.*spend")
_create_card_re = re.compile(r"(?:create|make|issue).*card.*\bfor\b")
_freeze_card_re = re.compile(r"(?:freeze|lock|block).*card")
_approve_re = re.compile(r"(?:approve|accept).*(?:expense|report)")
_help_re = re.compile(r"help|what can you do|capabilit|features?")

_window_re = re.compile(r"last\s+(\d{1,3})\s*(?:days?|d)\b")
_team_re = re.compile(r"\bfor\s+([a-z\s]+?)(?:\s+with\b|\s+limit\b|$)")
_limit_re = re.compile(r"limit\s*(?:of\s*)?\$?\s*([\d,]+(?:\.\d+)?)(?:\s*([a-z]{3})\b)?")
_ending_re = re.compile(r"ending\s*(?:in\s*)?(\d{4})")
_last4_re = re.compile(r"last\s*(?:4|four)\s*(?:digits\s*)?(\d{4})")
_report_re = re.compile(r"\b(?:report|id)\b\s*[:#]?\s*([\w-]+)", re.IGNORECASE)


def _clean_num(tok: str) -> Optional[float]:
    tok = tok.replace(",", "").strip()
    try:
        return float(tok)
    except ValueError:
        return None


def title_case(text: str) -> str:
    """'sales  ops' -> 'Sales  Ops' (first letter up, rest lower, per word)."""
    return re.sub(r"\w\S*", lambda m: m.group(0)[0].upper() + m.group(0)[1:].lower(), text)


# -----------------------------
# Extractors
# -----------------------------
def _no_params(q: str, raw: str) -> Dict[str, ParamValue]:
    return {}


def extract_spend_params(q: str, raw: str) -> Dict[str, ParamValue]:
    m = _window_re.search(q)
    days = int(m.group(1)) if m else DEFAULT_SPEND_WINDOW_DAYS
    if days <= 0:
        days = DEFAULT_SPEND_WINDOW_DAYS
    return {"days": days}


def extract_card_params(q: str, raw: str) -> Dict[str, ParamValue]:
    team_match = _team_re.search(q)
    team = title_case(team_match.group(1).strip()) if team_match else ""
    if not team:
        team = DEFAULT_TEAM

    limit: ParamValue = DEFAULT_CARD_LIMIT
    currency = DEFAULT_CURRENCY
    limit_match = _limit_re.search(q)
    if limit_match:
        value = _clean_num(limit_match.group(1))
        if value is not None and value > 0:
            limit = int(value) if value.is_integer() else value
        code = limit_match.group(2)
        if code and code not in _NOT_CURRENCY:
            currency = code.upper()

    return {"team": team, "limit": limit, "currency": currency}


def extract_freeze_params(q: str, raw: str) -> Dict[str, ParamValue]:
    m = _ending_re.search(q) or _last4_re.search(q)
    return {"last4": m.group(1) if m else DEFAULT_LAST4}


def extract_approve_params(q: str, raw: str) -> Dict[str, ParamValue]:
    # Report ids keep their original casing (RPT-7711)
    m = _report_re.search(raw)
    return {"reportId": m.group(1) if m else DEFAULT_REPORT_ID}


# -----------------------------
# Rule table (ORDER MATTERS)
# -----------------------------
class IntentRule(NamedTuple):
    kind: IntentKind
    predicate: Callable[[str], bool]
    extractor: Callable[[str, str], Dict[str, ParamValue]]


INTENT_RULES: List[IntentRule] = [
    IntentRule(IntentKind.CASH_BALANCE, lambda q: bool(_cash_re.search(q)), _no_params),
    IntentRule(IntentKind.SPEND_CATEGORY, lambda q: bool(_spend_re.search(q)), extract_spend_params),
    IntentRule(IntentKind.CARD_CREATE_VIRTUAL, lambda q: bool(_create_card_re.search(q)), extract_card_params),
    IntentRule(IntentKind.CARD_FREEZE, lambda q: bool(_freeze_card_re.search(q)), extract_freeze_params),
    IntentRule(IntentKind.EXPENSE_APPROVE, lambda q: bool(_approve_re.search(q)), extract_approve_params),
    IntentRule(IntentKind.SMALLTALK_HELP, lambda q: bool(_help_re.search(q)), _no_params),
]


def parse_intent(utterance: str) -> ParsedIntent:
    """
    Turn one utterance into a ParsedIntent.
    Falls through to UNKNOWN when no rule matches.
    """
    raw = (utterance or "").strip()
    q = raw.lower()

    for rule in INTENT_RULES:
        if rule.predicate(q):
            return ParsedIntent(kind=rule.kind, params=rule.extractor(q, raw))

    return ParsedIntent(kind=IntentKind.UNKNOWN)
