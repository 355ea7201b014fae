"""
HTML fragments rendered with unsafe_allow_html.

Anything the user typed (descriptions, category names, messages that
quote them) is escaped before it goes into markup.
"""

import html

from bliq_money.models.ledger import Transaction, TransactionStatus, ValidationIssue


def box(css_class: str, title: str, body: str) -> str:
    """A styled message box. `title` is trusted markup, `body` is escaped."""
    return f"""
    <div class="{css_class}">
        <h4>{title}</h4>
        <p>{html.escape(body)}</p>
    </div>
    """


def warnings_box(issues: list[ValidationIssue]) -> str:
    body = "<br>".join(html.escape(issue.message) for issue in issues)
    return f"""
    <div class="warning-box">
        <h4>⚠️ Please verify</h4>
        <p>{body}</p>
    </div>
    """


def transaction_caption(tx: Transaction) -> str:
    """Description, pending tag, category and date of a ledger row."""
    pending = (
        ' <span class="pending-tag">PENDING</span>'
        if tx.status == TransactionStatus.PENDING else ""
    )
    return (
        f"**{html.escape(tx.description)}**{pending}<br>"
        f"{html.escape(tx.category)} · {tx.date.strftime('%d/%m/%Y')}"
    )
