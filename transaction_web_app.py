"""
transaction_web_app.py

This Streamlit application is a fixed vs. flexible spending tracker. It
lets the user upload bank-statement CSV exports, choose a date range, see
spending totals by category split into fixed and flexible spending, move
transactions between categories, and review month-by-month trends and
recurring payments.

Expected CSV columns: Transaction Date (MM/DD/YYYY), Description, Amount
(negative = expense), and optionally Category, Type, Memo.

Thresholds and the default fixed categories can be overridden in
``.streamlit/secrets.toml``:

    [spending]
    fixed_categories = ["Bills & Utilities", "Home", "Education"]
    recurring_amount_tolerance = 0.15

Usage: run this app with

    streamlit run transaction_web_app.py
"""

import logging

import streamlit as st

from dashboard import SpendingDashboard, format_currency, transactions_table
from settings import FLAGGED_CATEGORY, REVIEW_LATER_CATEGORY, load_settings
from spending_session import SpendingSession
from statement_parser import StatementParseError

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

st.set_page_config(layout="wide", page_title="Fixed vs. Flexible Spending Tracker", page_icon="💰")


def get_session() -> SpendingSession:
    if "spending_session" not in st.session_state:
        try:
            overrides = dict(st.secrets.get("spending", {}))
        except FileNotFoundError:
            overrides = {}
        st.session_state["spending_session"] = SpendingSession(load_settings(overrides))
        st.session_state["imported_files"] = set()
        st.session_state["selected_category"] = None
    return st.session_state["spending_session"]


def render_sidebar(session: SpendingSession) -> None:
    st.sidebar.header("📁 Statements")
    uploads = st.sidebar.file_uploader("Upload CSV statements", type=["csv"], accept_multiple_files=True)
    for upload in uploads or []:
        file_key = f"{upload.name}:{upload.size}"
        if file_key in st.session_state["imported_files"]:
            continue
        try:
            count = session.import_csv(upload, upload.name)
        except StatementParseError as e:
            logger.error(f"Error parsing CSV {upload.name}: {e}")
            st.sidebar.error(f"Error parsing {upload.name}. {e}")
            continue
        st.session_state["imported_files"].add(file_key)
        st.sidebar.success(f"Added {count} transactions from {upload.name}")

    if st.sidebar.button("🧪 Load demo data"):
        session.load_demo_data()
        st.rerun()

    if session.file_names:
        st.sidebar.caption("Loaded: " + ", ".join(session.file_names))

    st.sidebar.header("📅 Date Range")
    start = st.sidebar.date_input("Start Date", value=session.start_date)
    end = st.sidebar.date_input("End Date", value=session.end_date)
    if (start, end) != (session.start_date, session.end_date):
        session.set_date_range(start, end)


def render_edit_form(session: SpendingSession, index: int, transaction) -> None:
    categories = session.registry.available
    with st.form(key=f"edit_{transaction.id}"):
        description = st.text_input("Description", value=transaction.description)
        amount = st.number_input("Amount", value=float(transaction.amount), step=0.01, format="%.2f")
        memo = st.text_input("Memo", value=transaction.memo or "")
        category = st.selectbox(
            "Category",
            categories,
            index=categories.index(transaction.category) if transaction.category in categories else 0,
        )
        if st.form_submit_button("Save"):
            if session.update_transaction(index, description=description, amount=amount, memo=memo, category=category):
                if category != transaction.category:
                    st.session_state["selected_category"] = None
                    st.toast(f"Transaction moved to {category}")
                st.rerun()
            else:
                st.error("Could not update this transaction")


def render_category_detail(session: SpendingSession, category: str) -> None:
    rows = session.category_transactions(category)
    total = session.analysis.category_totals.get(category, 0.0)
    st.subheader(f"{category} · {format_currency(total)}")
    if st.button("⬅️ Back to categories"):
        st.session_state["selected_category"] = None
        st.rerun()

    if not rows:
        st.info("No transactions in this category for the selected dates")
        return

    for index, t in rows:
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns([4, 2, 1, 1])
            col1.write(f"**{t.description}**  \n{t.transaction_date} · {t.memo or ''}")
            col2.write(format_currency(abs(t.amount)) if t.amount < 0 else f"+{format_currency(t.amount)}")
            if category != REVIEW_LATER_CATEGORY and col3.button("⏳", key=f"later_{t.id}", help="Review later"):
                session.move_to_review_later(index)
                st.rerun()
            if category != FLAGGED_CATEGORY and col4.button("🚩", key=f"flag_{t.id}", help="Flag for review"):
                session.flag_transaction(index)
                st.toast("Transaction flagged for review")
                st.rerun()
            with st.expander("✏️ Edit"):
                render_edit_form(session, index, t)


def render_category_list(session: SpendingSession) -> None:
    analysis = session.analysis
    fixed = session.registry.fixed

    col1, col2 = st.columns(2)
    for col, name in ((col1, REVIEW_LATER_CATEGORY), (col2, FLAGGED_CATEGORY)):
        count = len(session.category_transactions(name))
        if col.button(f"{name}: {count} transactions", key=f"open_{name}", use_container_width=True):
            st.session_state["selected_category"] = name
            st.rerun()

    st.subheader("Categories")
    total = analysis.total_spending
    ordered = sorted(analysis.category_totals.items(), key=lambda kv: kv[1], reverse=True)
    for name, value in ordered:
        share = value / total * 100 if total else 0
        kind = "Fixed" if name in fixed else "Flexible"
        if st.button(f"{name} ({kind}) · {format_currency(value)} · {share:.1f}%", key=f"cat_{name}",
                     use_container_width=True):
            st.session_state["selected_category"] = name
            st.rerun()
        description = session.registry.description(name)
        if description:
            st.caption(description)


def render_add_category(session: SpendingSession) -> None:
    with st.expander("➕ Add Category"):
        with st.form("add_category", clear_on_submit=True):
            name = st.text_input("Category Name")
            kind = st.radio("Category Type", ["Flexible", "Fixed"], horizontal=True)
            description = st.text_input("Description (optional)")
            if st.form_submit_button("Add"):
                ok, message = session.add_category(name, kind == "Fixed", description or None)
                if ok:
                    st.success(message)
                else:
                    st.error(message)


def render_transactions_view(session: SpendingSession, dashboard: SpendingDashboard) -> None:
    dashboard.render_spending_summary(session.analysis)

    selected = st.session_state.get("selected_category")
    if selected:
        render_category_detail(session, selected)
    else:
        dashboard.render_category_breakdown_chart(session.analysis, session.registry.fixed)
        render_category_list(session)

    render_add_category(session)

    with st.expander("📊 All transactions in range", expanded=False):
        st.dataframe(transactions_table(session.filtered_transactions), use_container_width=True, hide_index=True)


def render_dashboard_view(session: SpendingSession, dashboard: SpendingDashboard) -> None:
    report = session.dashboard_report()
    buckets = report["monthly_buckets"]

    st.header("📈 Monthly Spending Dashboard")
    dashboard.render_month_over_month(buckets, report["month_over_month"])
    months = st.select_slider("Months to show", options=[3, 6, 12], value=3)
    dashboard.render_monthly_chart(buckets, months)

    st.subheader("Top Category Changes (vs. Previous Month)")
    dashboard.render_category_trends(report["category_trends"])

    st.subheader("Current Month Breakdown")
    dashboard.render_current_month_breakdown(buckets[0] if buckets else None)

    dashboard.render_recurring_payments(report["recurring_payments"], session.settings.recurring_lookback_months)


def main() -> None:
    st.title("💰 Fixed vs. Flexible Spending Tracker")
    session = get_session()
    dashboard = SpendingDashboard()

    render_sidebar(session)

    if not len(session.store):
        st.info("Upload a CSV statement or load the demo data to get started")
        return

    view = st.radio("View", ["Transactions", "Dashboard"], horizontal=True, label_visibility="collapsed")
    if view == "Transactions":
        render_transactions_view(session, dashboard)
    else:
        render_dashboard_view(session, dashboard)


if __name__ == "__main__":
    main()
