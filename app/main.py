"""
Streamlit Frontend for Katha

This is the page the user interacts with daily: monthly totals,
month navigation, an entry form and the day-by-day ledger.

DESIGN PRINCIPLES:
1. The page never computes totals itself; it asks katha.queries
2. Every change goes through the store, which saves immediately
3. Clear messages when an import is rejected
"""

import math
from datetime import date

import streamlit as st

from katha.audit import configure_logging
from katha.config import get_settings, validate_all_settings
from katha.models.transaction import TransactionCandidate, TransactionType
from katha.queries import daily_ledger, month_label, monthly_stats, shift_month
from katha.store import InvalidImportError, TransactionStore, create_store, describe_record
from katha.validation import FormValidationError


# Page configuration
st.set_page_config(
    page_title="Katha Management - Daily Financial Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def format_amount(amount: float, sign: str = "") -> str:
    """Two-decimal display with the configured currency symbol."""
    symbol = get_settings().app.currency_symbol
    if math.isnan(amount):
        return f"{sign}{symbol}NaN"
    return f"{sign}{symbol}{amount:,.2f}"


@st.cache_resource
def get_store() -> TransactionStore:
    """Create and load the store once per process."""
    configure_logging(get_settings().app.log_level)
    store = create_store()
    store.load()
    return store


def main():
    """Main application entry point."""
    store = get_store()

    if "current_month" not in st.session_state:
        st.session_state.current_month = date.today().replace(day=1)

    render_sidebar(store)

    st.title("💰 Katha Management")
    render_monthly_stats(store)
    render_month_navigation()

    st.markdown("---")
    render_entry_form(store)

    st.markdown("---")
    render_daily_ledger(store)


def render_sidebar(store: TransactionStore):
    """Backup download and restore."""
    st.sidebar.title("💾 Backup")

    export_filename = store.export_filename()
    st.sidebar.download_button(
        "⬇️ Export Data",
        data=store.export(),
        file_name=export_filename,
        mime="application/json",
        on_click=store.record_export,
        args=(export_filename,),
    )

    uploaded_file = st.sidebar.file_uploader(
        "⬆️ Import Data",
        type=["json"],
        help="Replaces all current transactions with the file's contents",
    )

    if uploaded_file and st.sidebar.button("Replace my data with this file"):
        try:
            result = store.import_json(uploaded_file.getvalue(), source=uploaded_file.name)
        except InvalidImportError:
            st.sidebar.error(InvalidImportError.user_message)
        else:
            st.sidebar.success(f"Imported {result.accepted_count} transactions")
            if not result.is_clean:
                st.sidebar.warning(f"Skipped {result.rejected_count} invalid records")
                for rejected in result.rejected[:10]:
                    st.sidebar.caption(f"#{rejected.index}: {describe_record(rejected.record)}")

    st.sidebar.markdown("---")
    with st.sidebar.expander("⚙️ Status"):
        status = validate_all_settings()
        for key in ("storage", "app"):
            if status.get(key, False):
                st.success(f"✅ {key.title()} settings")
            else:
                st.error(f"❌ {key.title()}: {status.get(f'{key}_error', 'Not configured')}")
        st.caption(f"{len(store)} transactions stored")


def render_monthly_stats(store: TransactionStore):
    """Income, expense and balance for the month being viewed."""
    stats = monthly_stats(store.transactions, st.session_state.current_month)

    col1, col2, col3 = st.columns(3)
    col1.metric("📈 Income", format_amount(stats.income))
    col2.metric("📉 Expense", format_amount(stats.expense))
    col3.metric("👛 Balance", format_amount(stats.balance))


def render_month_navigation():
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if st.button("Previous"):
            st.session_state.current_month = shift_month(st.session_state.current_month, -1)
            st.rerun()

    with col2:
        st.subheader(f"📅 {month_label(st.session_state.current_month)}")

    with col3:
        if st.button("Next"):
            st.session_state.current_month = shift_month(st.session_state.current_month, 1)
            st.rerun()


def render_entry_form(store: TransactionStore):
    """The add-transaction form."""
    notice = st.session_state.pop("form_notice", None)
    if notice:
        st.warning(notice)

    with st.expander("➕ Add Transaction"):
        with st.form("add_transaction", clear_on_submit=True):
            col1, col2 = st.columns(2)

            with col1:
                entry_date = st.date_input("Date", value=date.today())
                amount = st.text_input("Amount (₹)", placeholder="0.00")

            with col2:
                entry_type = st.selectbox(
                    "Type",
                    options=[TransactionType.EXPENSE, TransactionType.INCOME],
                    format_func=lambda t: t.value.title(),
                )
                category = st.text_input(
                    "Category",
                    placeholder="Food, Transport, Salary, etc.",
                )

            description = st.text_input(
                "Description",
                placeholder="Details about this transaction",
            )

            if st.form_submit_button("Save Transaction", type="primary"):
                candidate = TransactionCandidate(
                    date=entry_date,
                    type=entry_type,
                    amount=amount,
                    category=category,
                    description=description,
                )
                _, issues = store.validator.validate_candidate(candidate)
                try:
                    store.add(candidate)
                except FormValidationError as e:
                    for issue in e.issues:
                        st.error(issue.message)
                else:
                    warnings = [issue for issue in issues if issue.severity == "warning"]
                    if warnings:
                        # Shown after the rerun below
                        st.session_state.form_notice = (
                            store.validator.get_user_friendly_summary(warnings)
                        )
                    st.rerun()


def render_daily_ledger(store: TransactionStore):
    """One block per day that has transactions."""
    st.subheader("Daily Transactions")

    entries = daily_ledger(store.transactions, st.session_state.current_month)
    if not entries:
        st.info("No transactions this month. Use 'Add Transaction' to record one.")
        return

    for entry in entries:
        with st.container(border=True):
            head, totals = st.columns([3, 2])
            head.markdown(f"**{entry.day.strftime('%A, %b %d')}**")
            totals.markdown(
                f":green[{format_amount(entry.income, '+')}] "
                f":red[{format_amount(entry.expense, '-')}]"
            )

            for transaction in entry.transactions:
                icon, color, sign = (
                    ("➕", "green", "+") if transaction.is_income else ("➖", "red", "-")
                )
                text, value, action = st.columns([4, 2, 1])
                text.markdown(f"{icon} **{transaction.description}**  \n{transaction.category}")
                value.markdown(f":{color}[**{format_amount(transaction.amount, sign)}**]")
                if action.button("×", key=f"delete-{transaction.id}", help="Delete"):
                    store.delete(transaction.id)
                    st.rerun()


if __name__ == "__main__":
    main()
