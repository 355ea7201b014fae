"""
Streamlit Frontend for Bliq Money

This is the user interface people use to keep their monthly budget.

DESIGN PRINCIPLES:
1. One month on screen at a time, defaulting to the current month
2. The four headline figures always visible
3. Clear error messages in simple language
4. Visual feedback for all operations
5. No hidden actions

The UI never computes balances itself. Every figure comes from the
ledger session; every change goes through it and is saved immediately.
"""

import asyncio
from datetime import date
from decimal import Decimal

import streamlit as st

from bliq_money.agents import split_paragraphs
from bliq_money.config import get_settings, validate_all_settings
from bliq_money.ledger import ValidationError
from bliq_money.models.ledger import (
    MONTHS,
    MonthKey,
    Transaction,
    TransactionStatus,
    TransactionType,
    TypeFilter,
)
from bliq_money.orchestrator import LedgerSession, create_app_components
from bliq_money.services import AuthenticationError, PersistenceError, StorageError
from fragments import box, transaction_caption, warnings_box


# Page configuration
st.set_page_config(
    page_title="Bliq Money",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .pending-tag {
        color: #b7791f;
        font-weight: bold;
    }
</style>
""", unsafe_allow_html=True)


CURRENCY = get_settings().app.currency_symbol

TYPE_LABELS = {
    TypeFilter.ALL: "All",
    TypeFilter.INCOME: "Income",
    TypeFilter.EXPENSE: "Expenses",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(value: Decimal) -> str:
    return f"{CURRENCY} {value:,.2f}"


def get_session() -> LedgerSession:
    """One ledger session per browser session."""
    if "ledger_session" not in st.session_state:
        session, _ = create_app_components()
        st.session_state.ledger_session = session
    return st.session_state.ledger_session


def show_save_warning(error: PersistenceError):
    st.markdown(box("warning-box", "⚠️ Not saved", error.user_message), unsafe_allow_html=True)


def show_validation_error(error: ValidationError):
    st.error("Please fix the following:")
    for issue in error.issues:
        st.markdown(f"- **{issue.field}**: {issue.message}")


def main():
    """Main application entry point."""
    session = get_session()

    if not session.is_open:
        render_auth_page(session)
        return

    user = session.auth_session.user

    # Sidebar navigation
    st.sidebar.title("💰 Bliq Money")
    st.sidebar.markdown(f"Hello, **{user.first_name}**")
    st.sidebar.markdown("---")

    if "active_month" not in st.session_state:
        st.session_state.active_month = MonthKey.current()

    month = st.sidebar.selectbox(
        "Month",
        options=MONTHS,
        index=st.session_state.active_month.ordinal,
        format_func=lambda m: m.value,
    )
    st.session_state.active_month = month

    page = st.sidebar.radio(
        "Navigate to:",
        ["📒 Ledger", "🏷️ Categories", "💡 Advice", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        run_async(session.logout())
        for key in ("active_month", "editing_id"):
            st.session_state.pop(key, None)
        st.rerun()

    # Route to appropriate page
    if page == "📒 Ledger":
        render_ledger_page(session, month)
    elif page == "🏷️ Categories":
        render_categories_page(session)
    elif page == "💡 Advice":
        render_advice_page(session, month)
    elif page == "⚙️ Settings":
        render_settings_page()


# =============================================================================
# Authentication
# =============================================================================

def render_auth_page(session: LedgerSession):
    """Login, signup and password recovery."""
    st.title("💰 Bliq Money")

    if "auth_view" not in st.session_state:
        st.session_state.auth_view = "login"

    view = st.session_state.auth_view

    if view == "login":
        with st.form("login"):
            email = st.text_input("E-mail", value=session.remembered_email())
            password = st.text_input("Password", type="password")
            remember = st.checkbox("Remember me", value=True)
            submitted = st.form_submit_button("Log in", type="primary")

        if submitted:
            try:
                run_async(session.login(email, password, remember))
                st.rerun()
            except AuthenticationError as e:
                st.error(e.user_message)
            except StorageError as e:
                st.error(f"Could not load your ledger: {e.user_message}")

        col1, col2 = st.columns(2)
        with col1:
            if st.button("Create an account"):
                st.session_state.auth_view = "signup"
                st.rerun()
        with col2:
            if st.button("Forgot your password?"):
                st.session_state.auth_view = "forgot"
                st.rerun()

    elif view == "signup":
        with st.form("signup"):
            name = st.text_input("Full name")
            email = st.text_input("E-mail")
            birth_date = st.date_input(
                "Birth date",
                value=date(1990, 1, 1),
                min_value=date(1900, 1, 1),
                max_value=date.today(),
            )
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign up", type="primary")

        if submitted:
            try:
                run_async(session.signup(name, email, password, birth_date))
                st.rerun()
            except AuthenticationError as e:
                st.error(e.user_message)

        if st.button("Back to login"):
            st.session_state.auth_view = "login"
            st.rerun()

    else:
        with st.form("forgot"):
            email = st.text_input("E-mail")
            submitted = st.form_submit_button("Send recovery link", type="primary")

        if submitted:
            try:
                run_async(session.reset_password(email))
                st.success("If the address is registered, you will receive instructions shortly.")
            except AuthenticationError as e:
                st.error(e.user_message)

        if st.button("Back to login"):
            st.session_state.auth_view = "login"
            st.rerun()


# =============================================================================
# Ledger
# =============================================================================

def render_ledger_page(session: LedgerSession, month: MonthKey):
    """Headline figures, carry-over toggle and the transaction list."""
    st.title(f"📒 {month.value}")

    totals = session.totals(month)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Opening balance", money(totals.opening_balance))
    col2.metric("Income", money(totals.confirmed_income))
    col3.metric("Expenses", money(totals.confirmed_expense))
    col4.metric(
        "Current balance",
        money(totals.net),
        delta=f"Projected {money(totals.projected)}",
        delta_color="off",
    )

    carry_over = session.ledger.months.carry_over(month)
    label = "Carry over the balance of the previous months"
    if month.previous is None:
        label += " (no effect in the first month)"
    if st.toggle(label, value=carry_over, key=f"carry_{month.name}") != carry_over:
        try:
            run_async(session.toggle_carry_over(month))
        except PersistenceError as e:
            show_save_warning(e)
        st.rerun()

    st.markdown("---")
    render_transaction_form(session, month)
    st.markdown("---")

    # Filters
    col1, col2 = st.columns([3, 1])
    with col1:
        search_term = st.text_input(
            "Search",
            placeholder="Description or category",
        )
    with col2:
        type_filter = st.selectbox(
            "Type",
            options=list(TypeFilter),
            format_func=lambda x: TYPE_LABELS[x],
        )

    transactions = session.filter(month, search_term, type_filter)
    if not transactions:
        st.info("📋 No transactions here yet. Use the form above to add one.")
        return

    for tx in transactions:
        render_transaction_row(session, month, tx)


def render_transaction_row(session: LedgerSession, month: MonthKey, tx: Transaction):
    sign = "+" if tx.type == TransactionType.INCOME else "-"
    col1, col2, col3, col4, col5 = st.columns([4, 2, 1, 1, 1])

    with col1:
        st.markdown(transaction_caption(tx), unsafe_allow_html=True)
    with col2:
        st.markdown(f"**{sign}{money(tx.amount)}**")
    with col3:
        if tx.status == TransactionStatus.PENDING:
            if st.button("✅", key=f"confirm_{tx.id}", help="Confirm"):
                try:
                    run_async(session.confirm_transaction(month, tx.id))
                except PersistenceError as e:
                    show_save_warning(e)
                st.rerun()
    with col4:
        if st.button("✏️", key=f"edit_{tx.id}", help="Edit"):
            st.session_state.editing_id = tx.id
            st.rerun()
    with col5:
        if st.button("🗑️", key=f"delete_{tx.id}", help="Delete"):
            try:
                run_async(session.delete_transaction(month, tx.id))
            except PersistenceError as e:
                show_save_warning(e)
            st.rerun()


def render_transaction_form(session: LedgerSession, month: MonthKey):
    """Add a new transaction, or edit the one selected in the list."""
    editing_id = st.session_state.get("editing_id")
    editing = session.ledger.store(month).get(editing_id) if editing_id else None

    category_names = session.ledger.categories.names()
    if editing and editing.category not in category_names:
        category_names = [editing.category] + category_names

    title = "✏️ Edit transaction" if editing else "➕ New transaction"
    with st.expander(title, expanded=editing is not None):
        with st.form(f"transaction_{editing_id or 'new'}", clear_on_submit=editing is None):
            col1, col2 = st.columns(2)
            with col1:
                description = st.text_input(
                    "Description *",
                    value=editing.description if editing else "",
                )
                amount = st.number_input(
                    f"Amount ({CURRENCY}) *",
                    value=float(editing.amount) if editing else 0.0,
                    min_value=0.0,
                    step=0.01,
                    format="%.2f",
                )
                tx_date = st.date_input(
                    "Date *",
                    value=editing.date if editing else date.today(),
                )
            with col2:
                category = st.selectbox(
                    "Category *",
                    options=category_names,
                    index=category_names.index(editing.category) if editing else 0,
                )
                tx_type = st.radio(
                    "Type",
                    options=list(TransactionType),
                    index=list(TransactionType).index(editing.type) if editing else 1,
                    format_func=lambda x: "Income" if x == TransactionType.INCOME else "Expense",
                    horizontal=True,
                )
                status = st.radio(
                    "Status",
                    options=list(TransactionStatus),
                    index=list(TransactionStatus).index(editing.status) if editing else 0,
                    format_func=lambda x: x.value.title(),
                    horizontal=True,
                )

            submitted = st.form_submit_button("💾 Save", type="primary")

        if editing and st.button("Cancel edit"):
            st.session_state.pop("editing_id", None)
            st.rerun()

    if not submitted:
        return

    data = {
        "description": description,
        "amount": Decimal(str(amount)).quantize(Decimal("0.01")),
        "date": tx_date,
        "category": category,
        "type": tx_type,
        "status": status,
    }

    result = session.validate(data, month)
    if result.warnings:
        st.markdown(warnings_box(result.warnings), unsafe_allow_html=True)

    try:
        if editing:
            run_async(session.update_transaction(month, {**data, "id": editing.id}))
            st.session_state.pop("editing_id", None)
        else:
            run_async(session.add_transaction(month, data))
        st.success("Saved.")
    except ValidationError as e:
        show_validation_error(e)
        return
    except PersistenceError as e:
        show_save_warning(e)

    if not result.warnings:
        st.rerun()


# =============================================================================
# Categories
# =============================================================================

def render_categories_page(session: LedgerSession):
    """List, add and remove categories."""
    st.title("🏷️ Categories")
    st.markdown(
        "Removing a category does not change existing transactions; "
        "they keep the name they were saved with."
    )

    for category in list(session.ledger.categories):
        col1, col2 = st.columns([5, 1])
        col1.markdown(f"**{category.name}**")
        if col2.button("🗑️", key=f"remove_cat_{category.id}", help="Remove"):
            try:
                run_async(session.remove_category(category.id))
            except PersistenceError as e:
                show_save_warning(e)
            st.rerun()

    st.markdown("---")
    with st.form("new_category", clear_on_submit=True):
        name = st.text_input("New category")
        submitted = st.form_submit_button("➕ Add", type="primary")

    if submitted:
        try:
            run_async(session.add_category(name))
            st.rerun()
        except ValidationError as e:
            show_validation_error(e)
        except PersistenceError as e:
            show_save_warning(e)


# =============================================================================
# Advice
# =============================================================================

def render_advice_page(session: LedgerSession, month: MonthKey):
    """Ask the advisor about the active month."""
    st.title("💡 Advice")
    st.markdown(f"A short reading of your transactions in **{month.value}**.")

    if st.button("✨ Get advice", type="primary"):
        with st.spinner("Analysing your month..."):
            advice = run_async(session.request_advice(month))

        if advice is None:
            st.markdown(box(
                "info-box",
                "No insight available",
                "The advisor could not answer right now. Please try again later.",
            ), unsafe_allow_html=True)
        else:
            for paragraph in split_paragraphs(advice):
                st.markdown(paragraph)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Gemini (Advice)", "gemini"),
        ("Local storage", "storage"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
