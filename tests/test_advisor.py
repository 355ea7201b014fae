"""Tests for the advice prompt and reply handling (no Gemini calls)."""

from conftest import make_draft

from bliq_money.agents import build_advice_prompt, split_paragraphs
from bliq_money.agents.advisor import MAX_TRANSACTIONS_IN_PROMPT
from bliq_money.models.ledger import (
    MonthKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)


def tx(**overrides) -> Transaction:
    return Transaction(**{**make_draft(), **overrides})


class TestSplitParagraphs:

    def test_drops_blank_lines(self):
        text = "Primeiro.\n\n  Segundo.  \n\n\nTerceiro."
        assert split_paragraphs(text) == ["Primeiro.", "Segundo.", "Terceiro."]

    def test_empty(self):
        assert split_paragraphs("") == []


class TestAdvicePrompt:

    def test_contains_month_and_totals(self):
        transactions = [
            tx(description="Salário", amount="3000.00", type=TransactionType.INCOME),
            tx(description="Aluguel", amount="1200.00"),
            tx(description="Conta de luz", amount="150.00", status=TransactionStatus.PENDING),
        ]
        prompt = build_advice_prompt(MonthKey.MARCO, transactions)

        assert "Month: Março" in prompt
        assert "Confirmed income: R$ 3,000.00" in prompt
        assert "Confirmed expenses: R$ 1,200.00" in prompt
        assert "Pending expenses: R$ 150.00" in prompt
        assert "Result if everything settles: R$ 1,650.00" in prompt
        assert "+R$ 3,000.00" in prompt
        assert "Conta de luz" in prompt

    def test_empty_month(self):
        prompt = build_advice_prompt(MonthKey.JANEIRO, [])
        assert "(no transactions recorded)" in prompt

    def test_long_months_are_truncated(self):
        transactions = [
            tx(description=f"Item {i}")
            for i in range(MAX_TRANSACTIONS_IN_PROMPT + 5)
        ]
        prompt = build_advice_prompt(MonthKey.JANEIRO, transactions, currency_symbol="$")
        assert "... and 5 more" in prompt
        assert f"Item {MAX_TRANSACTIONS_IN_PROMPT + 4}" not in prompt
