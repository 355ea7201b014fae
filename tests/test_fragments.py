"""Tests for the HTML fragments the Streamlit app renders."""

from conftest import make_draft

from fragments import box, transaction_caption, warnings_box

from bliq_money.models.ledger import Transaction, TransactionStatus, ValidationIssue


class TestTransactionCaption:

    def test_user_text_is_escaped(self):
        tx = Transaction.model_validate(make_draft(
            description="<script>alert(1)</script>",
            category="Casa & <b>Lar</b>",
        ))

        caption = transaction_caption(tx)

        assert "<script>" not in caption
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in caption
        assert "Casa &amp; &lt;b&gt;Lar&lt;/b&gt;" in caption
        assert "10/01/2024" in caption

    def test_pending_tag(self):
        pending = Transaction.model_validate(make_draft(status=TransactionStatus.PENDING))
        confirmed = Transaction.model_validate(make_draft())

        assert 'class="pending-tag"' in transaction_caption(pending)
        assert "pending-tag" not in transaction_caption(confirmed)


class TestBoxes:

    def test_warning_messages_are_escaped(self):
        issues = [
            ValidationIssue(
                field="category",
                issue_type="unknown_category",
                message="Category '<img src=x onerror=alert(1)>' does not exist",
                severity="info",
            ),
            ValidationIssue(
                field="amount",
                issue_type="zero_amount",
                message="Amount is zero",
                severity="warning",
            ),
        ]

        rendered = warnings_box(issues)

        assert "<img" not in rendered
        assert "&lt;img src=x onerror=alert(1)&gt;" in rendered
        assert "<br>Amount is zero" in rendered

    def test_box_escapes_body_only(self):
        rendered = box("info-box", "<em>Title</em>", "1 < 2")

        assert '<div class="info-box">' in rendered
        assert "<h4><em>Title</em></h4>" in rendered
        assert "<p>1 &lt; 2</p>" in rendered
