"""
dashboard.py

Charts and panels for the spending tracker.
Renders the session's analyses with Plotly inside Streamlit.

Features:
- Fixed vs flexible summary cards and donut chart
- Category breakdown bar chart
- Monthly fixed/flexible stacked bars
- Biggest category increases and decreases
- Current month category breakdown
- Recurring payments with drill-down
"""

from __future__ import annotations

from typing import Collection, Dict, List, Optional, Sequence

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from insights_engine import (
    CategoryTrend,
    MonthlyBucket,
    RecurringPayment,
    bucket_breakdown,
    split_category_trends,
)
from spending_analysis import CategoryAnalysis, prepare_category_chart_data, spending_type_split


def format_currency(amount: float) -> str:
    return f"${amount:,.2f}"


def format_percent(value: Optional[float]) -> Optional[str]:
    if value is None:
        return None
    return f"{value:+.1f}%"


class SpendingDashboard:
    """Dashboard views over a ``SpendingSession``'s results."""

    def __init__(self):
        self.color_scheme = {
            'fixed': '#3B82F6',
            'flexible': '#10B981',
        }

    def render_spending_summary(self, analysis: CategoryAnalysis):
        """Render the fixed/flexible cards and the split donut."""
        split = spending_type_split(analysis)

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("💰 Total Spending", format_currency(analysis.total_spending))
        with col2:
            st.metric("🏠 Fixed", format_currency(analysis.fixed_total), f"{split['fixed']}% of total", delta_color="off")
        with col3:
            st.metric("🛍️ Flexible", format_currency(analysis.flexible_total), f"{split['flexible']}% of total", delta_color="off")

        values = [(name, value) for name, value in
                  (("Fixed", analysis.fixed_total), ("Flexible", analysis.flexible_total)) if value > 0]
        if not values:
            st.info("📊 No expenses in the selected date range")
            return

        fig = go.Figure(data=[go.Pie(
            labels=[v[0] for v in values],
            values=[v[1] for v in values],
            hole=0.4,
            marker=dict(colors=[self.color_scheme[v[0].lower()] for v in values]),
            textinfo='label+percent',
            hovertemplate='<b>%{label}</b><br>$%{value:,.2f}<br>%{percent}<extra></extra>'
        )])
        fig.update_layout(title="Fixed vs Flexible Spending", height=350)
        st.plotly_chart(fig, use_container_width=True)

    def render_category_breakdown_chart(self, analysis: CategoryAnalysis, fixed_categories: Collection[str]):
        rows = prepare_category_chart_data(analysis, fixed_categories)
        if not rows:
            return

        fig = go.Figure(data=[go.Bar(
            x=[r['value'] for r in rows],
            y=[r['name'] for r in rows],
            orientation='h',
            marker_color=[self.color_scheme[r['type'].lower()] for r in rows],
            customdata=[r['type'] for r in rows],
            hovertemplate='<b>%{y}</b> (%{customdata})<br>$%{x:,.2f}<extra></extra>'
        )])
        fig.update_layout(
            title="Spending by Category",
            xaxis_title="Amount ($)",
            height=max(300, 40 * len(rows)),
            yaxis=dict(autorange="reversed")
        )
        st.plotly_chart(fig, use_container_width=True)

    def render_monthly_chart(self, buckets: Sequence[MonthlyBucket], months: int = 6):
        """Stacked fixed/flexible bars, oldest month on the left."""
        shown = list(buckets[:months])[::-1]
        if not shown:
            return

        labels = [b.label for b in shown]
        fig = go.Figure()
        fig.add_trace(go.Bar(
            x=labels,
            y=[b.fixed_total for b in shown],
            name="Fixed",
            marker_color=self.color_scheme['fixed'],
            hovertemplate='<b>Fixed</b><br>%{x}<br>$%{y:,.2f}<extra></extra>'
        ))
        fig.add_trace(go.Bar(
            x=labels,
            y=[b.flexible_total for b in shown],
            name="Flexible",
            marker_color=self.color_scheme['flexible'],
            hovertemplate='<b>Flexible</b><br>%{x}<br>$%{y:,.2f}<extra></extra>'
        ))
        fig.update_layout(
            title="Monthly Spending",
            barmode='stack',
            xaxis_title="Month",
            yaxis_title="Amount ($)",
            height=400,
            hovermode='x unified',
            legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1)
        )
        st.plotly_chart(fig, use_container_width=True)

    def render_month_over_month(self, buckets: Sequence[MonthlyBucket], changes: Dict[str, Optional[float]]):
        current = buckets[0] if buckets else None
        col1, col2, col3 = st.columns(3)
        for col, title, attr, key in (
            (col1, "Current Month Total", "total", "total"),
            (col2, "Fixed Expenses", "fixed_total", "fixed"),
            (col3, "Flexible Expenses", "flexible_total", "flexible"),
        ):
            with col:
                value = getattr(current, attr) if current else 0.0
                # Spending going up is bad news
                st.metric(title, format_currency(value), format_percent(changes.get(key)), delta_color="inverse")

    def render_category_trends(self, trends: List[CategoryTrend], limit: int = 5):
        if not trends:
            st.info("Need at least 2 months of data for comparison")
            return

        increases, decreases = split_category_trends(trends, limit)
        col1, col2 = st.columns(2)
        for col, title, rows, empty in (
            (col1, "Biggest Increases", increases, "No increases to show"),
            (col2, "Biggest Decreases", decreases, "No decreases to show"),
        ):
            with col:
                st.markdown(f"**{title}**")
                if not rows:
                    st.caption(empty)
                for t in rows:
                    st.metric(
                        t.name,
                        f"{format_currency(t.previous_month)} → {format_currency(t.current_month)}",
                        format_percent(t.percent_change),
                        delta_color="inverse",
                    )

    def render_current_month_breakdown(self, bucket: Optional[MonthlyBucket]):
        """Pie and table of the latest month's categories."""
        rows = bucket_breakdown(bucket) if bucket else []
        if not rows:
            st.info("No spending recorded this month yet")
            return

        col1, col2 = st.columns(2)
        with col1:
            fig = go.Figure(data=[go.Pie(
                labels=[r['name'] for r in rows],
                values=[r['value'] for r in rows],
                textinfo='label+percent',
                hovertemplate='<b>%{label}</b><br>$%{value:,.2f}<extra></extra>'
            )])
            fig.update_layout(title=bucket.label, height=300, showlegend=False)
            st.plotly_chart(fig, use_container_width=True)
        with col2:
            df = pd.DataFrame([{
                'Category': r['name'],
                'Amount': format_currency(r['value']),
                '% of Total': f"{r['share']:.1f}%",
            } for r in rows])
            st.dataframe(df, use_container_width=True, hide_index=True)

    def render_recurring_payments(self, payments: List[RecurringPayment], lookback_months: int = 6):
        st.subheader("🔁 Recurring Payments")
        if not payments:
            st.info(f"No recurring payments detected in the last {lookback_months} months")
            return

        total = sum(p.average_amount for p in payments)
        st.caption(f"{len(payments)} recurring payments, about {format_currency(total)} per cycle")

        for p in payments:
            label = f"{p.description} · {format_currency(p.average_amount)} · {p.occurrences}x · {p.category}"
            with st.expander(label):
                st.write(f"**Last charged:** {p.last_date.strftime('%b %d, %Y')}")
                if not p.consistent_amount:
                    st.write("Amount varies between charges")
                st.dataframe(transactions_table(p.transactions), use_container_width=True, hide_index=True)


def transactions_table(transactions) -> pd.DataFrame:
    return pd.DataFrame([{
        'Date': t.transaction_date,
        'Description': t.description,
        'Amount': t.amount,
        'Category': t.category,
        'Memo': t.memo or '',
    } for t in transactions], columns=['Date', 'Description', 'Amount', 'Category', 'Memo'])
