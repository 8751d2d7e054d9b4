from __future__ import annotations

import json
import logging
from datetime import date
from typing import Sequence
from urllib.error import URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from config import get_settings
from formatting import format_currency
from metrics import MonthlySummary
from models import Direction


logger = logging.getLogger(__name__)

ADVICE_MAX_CHARS = 150
IDLE_MESSAGE = "Waiting for entries to produce insights..."
EMPTY_RESPONSE_ADVICE = "Keep a tight grip on your fixed costs."
FALLBACK_ADVICE = "Tip: review your variable costs and prioritise your cash reserve."

FINANCIAL_TIPS = (
    "Pay yourself first: set money aside for savings as soon as you get paid.",
    "50/30/20 rule: 50% for needs, 30% for wants and 20% for your future.",
    "Avoid impulse buys: wait 24 hours before placing any online order.",
    "Build an emergency fund covering at least 6 months of fixed costs.",
    "Review your monthly subscriptions and cancel the ones you no longer use.",
    "Diversify your investments to reduce risk and grow gains over time.",
    "Track every cent: small expenses add up to end-of-month surprises.",
    "Pay off the highest-interest debts first to stop the snowball effect.",
)


def tip_of_the_day(today: date) -> str:
    return FINANCIAL_TIPS[today.toordinal() % len(FINANCIAL_TIPS)]


def build_prompt(summary: MonthlySummary, transactions: Sequence) -> str:
    expense_summary: dict[str, float] = {}
    for txn in transactions:
        if txn.type.direction == Direction.debit:
            expense_summary[txn.category] = (
                expense_summary.get(txn.category, 0) + txn.amount_cents / 100
            )
    return (
        "Act as an executive financial consultant. Analyse the figures below "
        "and give 2 short, precise and professional tips.\n"
        f"Balance today: {format_currency(summary.on_hand)}\n"
        f"Estimated end-of-month balance: {format_currency(summary.projected_total)}\n"
        f"Expenses by category: {json.dumps(expense_summary, ensure_ascii=False)}\n"
        f"Be direct. At most {ADVICE_MAX_CHARS} characters."
    )


class AdvisorService:
    def __init__(self) -> None:
        self.settings = get_settings()

    def advise(self, summary: MonthlySummary, transactions: Sequence) -> str:
        if not transactions:
            return IDLE_MESSAGE
        if not self.settings.advisor_api_key:
            return FALLBACK_ADVICE

        prompt = build_prompt(summary, transactions)
        try:
            text = _generate_text(
                prompt,
                base_url=self.settings.advisor_url,
                model=self.settings.advisor_model,
                api_key=self.settings.advisor_api_key,
                timeout=self.settings.advisor_timeout_secs,
            )
        except RuntimeError as exc:
            logger.warning(
                f"advisor_failed: model={self.settings.advisor_model} error={exc}"
            )
            return FALLBACK_ADVICE
        return text.strip() or EMPTY_RESPONSE_ADVICE


def _generate_text(
    prompt: str, *, base_url: str, model: str, api_key: str, timeout: float
) -> str:
    url = f"{base_url.rstrip('/')}/{quote(model)}:generateContent?key={quote(api_key)}"
    body = json.dumps({"contents": [{"parts": [{"text": prompt}]}]}).encode("utf-8")
    req = Request(
        url,
        data=body,
        method="POST",
        headers={"Accept": "application/json", "Content-Type": "application/json"},
    )
    try:
        with urlopen(req, timeout=timeout) as resp:
            payload = json.loads(resp.read().decode("utf-8"))
    except (URLError, TimeoutError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Failed to fetch advice from model {model}") from exc

    try:
        parts = payload["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected advisor response") from exc
