"""
Financial Advice Agent

Produces a short natural-language reading of one month of the ledger.

CRITICAL BOUNDARIES:
- CAN: Comment on the transactions it is given, suggest priorities
- CANNOT: Change the ledger (it only ever receives a copy of one month)
- CANNOT: Invent figures; the totals are computed here and handed to it

The LLM is a COMMENTATOR, not a BOOKKEEPER. If it fails, the caller just
shows no insight; nothing in the ledger depends on the answer.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import google.generativeai as genai

from bliq_money.config import GeminiSettings, get_settings
from bliq_money.ledger.totals import summarize
from bliq_money.models.ledger import MonthKey, Transaction, TransactionType
from bliq_money.services.errors import ExternalCollaboratorError


MAX_TRANSACTIONS_IN_PROMPT = 60


class AdviceError(ExternalCollaboratorError):
    """The advice generator failed or returned nothing usable."""
    pass


class AdviceGeneratorInterface(ABC):
    """Anything that turns a month of transactions into advice text."""

    @abstractmethod
    async def get_advice(
        self,
        month: MonthKey,
        transactions: Sequence[Transaction],
    ) -> str:
        """
        Free-form advice, possibly several newline-separated paragraphs.

        Raises:
            AdviceError: If no advice could be produced
        """
        pass


def split_paragraphs(text: str) -> list[str]:
    """Split advice text into its non-empty paragraphs (one per line)."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def build_advice_prompt(
    month: MonthKey,
    transactions: Sequence[Transaction],
    currency_symbol: str = "R$",
) -> str:
    """
    Build the prompt for one month.

    Figures are pre-computed so the model only has to comment on them.
    """
    totals = summarize(transactions)

    lines = []
    for tx in list(transactions)[:MAX_TRANSACTIONS_IN_PROMPT]:
        sign = "+" if tx.type == TransactionType.INCOME else "-"
        lines.append(
            f"- {tx.date.isoformat()} | {tx.description} | {tx.category} | "
            f"{sign}{currency_symbol} {tx.amount:,.2f} | {tx.status.value}"
        )
    if len(transactions) > MAX_TRANSACTIONS_IN_PROMPT:
        lines.append(f"- ... and {len(transactions) - MAX_TRANSACTIONS_IN_PROMPT} more")
    transactions_str = "\n".join(lines) or "- (no transactions recorded)"

    return f"""You are a personal finance advisor for a Brazilian user.

Month: {month.value}

Totals for the month (already calculated, do not recalculate):
- Confirmed income: {currency_symbol} {totals.confirmed_income:,.2f}
- Confirmed expenses: {currency_symbol} {totals.confirmed_expense:,.2f}
- Pending income: {currency_symbol} {totals.pending_income:,.2f}
- Pending expenses: {currency_symbol} {totals.pending_expense:,.2f}
- Result if everything settles: {currency_symbol} {totals.projected:,.2f}

Transactions (date | description | category | amount | status):
{transactions_str}

Write a short strategic analysis in Brazilian Portuguese:
- 3 to 5 short paragraphs, one per line, no markdown headers
- Point out the biggest expense categories and any risk from pending items
- End with one concrete recommendation

IMPORTANT: Use ONLY the data above. Do NOT invent transactions or amounts."""


class GeminiAdviceAgent(AdviceGeneratorInterface):
    """Advice generator backed by Google Gemini."""

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._currency_symbol = get_settings().app.currency_symbol
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    async def get_advice(
        self,
        month: MonthKey,
        transactions: Sequence[Transaction],
    ) -> str:
        prompt = build_advice_prompt(MonthKey(month), transactions, self._currency_symbol)
        try:
            response = await self._model.generate_content_async(prompt)
            text = response.text.strip()
        except Exception as e:
            raise AdviceError(
                f"Gemini request failed: {e}",
                user_message="The advisor is unavailable right now.",
            ) from e

        if not text:
            raise AdviceError("Gemini returned an empty response")
        return text
