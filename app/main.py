import sys
import os
import json
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import streamlit as st

from budget_core.events import event_bus, ACCOUNT_DELETED, TARGET_REACHED
import pandas as pd
import plotly.graph_objects as go
import plotly.express as px
from uuid import uuid4
from budget_core.accounts import create_account, update_account, delete_account, dependent_entries
from budget_core.config import configure_logging, get_seed_path
from budget_core.domain import (
    Entry, ENTRY_TYPES, FREQUENCIES, ACCOUNT_TYPES, ALLOCATION, MONTHLY,
)
from budget_core.frequency import from_monthly
from budget_core.lazy import category_breakdown
from budget_core.memo import ValuationCache
from budget_core.projection import projection_table
from budget_core.services import default_budget_service
from budget_core.transforms import (
    load_seed, dump_budget, add_entry, update_entry, remove_entry, parse_value,
    totals_by_category, savings_rate, record_snapshot, example_entries,
)

configure_logging()
st.set_page_config(page_title="Budget Planner", layout="wide")

if "entries" not in st.session_state:
    st.session_state.entries, st.session_state.accounts = load_seed(get_seed_path())
if "valuation_cache" not in st.session_state:
    st.session_state.valuation_cache = ValuationCache()
if "history" not in st.session_state:
    st.session_state.history = ()
if "alerts" not in st.session_state:
    st.session_state.alerts = []
if "pending_delete" not in st.session_state:
    st.session_state.pending_delete = None

view = st.sidebar.selectbox("View", list(FREQUENCIES), index=list(FREQUENCIES).index(MONTHLY))
target = st.sidebar.number_input("Net worth target", min_value=0, value=1_000_000, step=50_000)

entries = st.session_state.entries
accounts = st.session_state.accounts
valuation = st.session_state.valuation_cache.get_or_evaluate(entries)
totals = valuation.totals

st.session_state.history = record_snapshot(
    st.session_state.history, pd.Timestamp.today().strftime("%Y-%m"), totals
)

report = default_budget_service(cache=st.session_state.valuation_cache, target=target).report(entries, accounts)
for check in report["validation"]:
    for msg in check["messages"]:
        st.sidebar.warning(msg)
summary = report["result"]

st.sidebar.download_button(
    "⬇ Export JSON",
    json.dumps(dump_budget(entries, accounts), indent=2),
    file_name="budget.json",
    mime="application/json",
)


def money(v: float) -> str:
    return f"${from_monthly(v, view):,.0f}"


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🧾 Entries", "💼 Accounts", "📈 Projections"]
)

if menu == "🏠 Overview":
    st.title("🏠 Overview")
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric(f"Income ({view})", money(totals.income))
    with k2:
        st.metric(f"Expenses ({view})", money(totals.expense))
    with k3:
        st.metric(f"Net ({view})", money(totals.net))
    with k4:
        st.metric("Savings Rate", f"{savings_rate(totals):.1%}")

    breakdown = category_breakdown(entries, valuation.values)
    if breakdown:
        df_cat = pd.DataFrame(
            [{"Category": c, "Amount": from_monthly(v, view)} for c, v in breakdown]
        )
        fig_cat = px.pie(df_cat, values="Amount", names="Category", title="Expenses by Category")
        fig_cat.update_layout(height=350)
        st.plotly_chart(fig_cat, use_container_width=True)
    else:
        st.info("No expenses to display.")

    history = pd.DataFrame(st.session_state.history)
    if not history.empty:
        fig_ts = go.Figure()
        for col, label in (("income", "Income"), ("expense", "Expense"), ("net", "Net")):
            fig_ts.add_trace(go.Scatter(
                x=history["month"], y=history[col].map(lambda v: from_monthly(v, view)),
                mode="lines+markers", name=label
            ))
        fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_ts, use_container_width=True)

    by_cat = totals_by_category(entries, valuation.values)
    if by_cat:
        st.subheader("📊 Totals by Category")
        st.table(pd.DataFrame(by_cat).T.map(money))

elif menu == "🧾 Entries":
    st.title("🧾 Entries")

    rows = [
        {
            "Name": e.name,
            "Type": e.type,
            "Value": f"{e.value:g}% of {e.reference}" if e.value_mode == "percent" else f"{e.value:,.2f} / {e.frequency}",
            "Category": e.category,
            f"Resolved ({view})": money(valuation.values.get(e.id, 0.0)),
        }
        for e in entries
    ]
    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True)
        csv = pd.DataFrame(rows).to_csv(index=False)
        st.download_button("⬇ Download CSV", csv, file_name="budget.csv", mime="text/csv")
    else:
        st.info("No entries yet.")

    st.subheader("➕ Add Entry")
    with st.form("entry_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name")
            entry_type = st.selectbox("Type", list(ENTRY_TYPES))
            value_text = st.text_input("Value", help="1500, 30% of Salary, 5%@Bonus")
        with col2:
            frequency = st.selectbox("Frequency", list(FREQUENCIES), index=list(FREQUENCIES).index(MONTHLY))
            category = st.text_input("Category")
            account_names = {a.name: a.id for a in accounts}
            target_name = st.selectbox("Target account (allocations)", [""] + list(account_names))
            wealth = st.checkbox("Wealth building")
        submitted = st.form_submit_button("Add Entry")

        if submitted:
            parsed = parse_value(value_text)
            new_entry = Entry(
                id=str(uuid4()),
                type=entry_type,
                name=name.strip(),
                frequency=frequency,
                category=category.strip(),
                is_wealth_building=wealth and entry_type == ALLOCATION,
                target_account=account_names.get(target_name, "") if entry_type == ALLOCATION else "",
                **parsed,
            )
            st.session_state.entries = add_entry(entries, new_entry)
            st.rerun()

    if entries:
        st.subheader("✏️ Edit or Remove")
        labels = {f"{e.name or '(unnamed)'} [{e.type}]": e for e in entries}
        chosen = labels[st.selectbox("Entry", list(labels))]
        new_value = st.text_input("New value", value="", key=f"edit_{chosen.id}")
        c1, c2 = st.columns(2)
        with c1:
            if st.button("Update value") and new_value:
                st.session_state.entries = update_entry(entries, chosen.id, **parse_value(new_value, chosen))
                st.rerun()
        with c2:
            if st.button("Remove entry"):
                st.session_state.entries = remove_entry(entries, chosen.id)
                st.rerun()

    if st.button("Load example budget"):
        st.session_state.entries = example_entries()
        st.rerun()

elif menu == "💼 Accounts":
    st.title("💼 Accounts")

    contributions = summary["contributions"]
    if accounts:
        account_cols = st.columns(len(accounts))
        for col, acc in zip(account_cols, accounts):
            with col:
                st.metric(
                    acc.name,
                    f"${acc.balance:,.0f}",
                    delta=f"+{money(contributions.get(acc.id, 0.0))} / {view}" if contributions.get(acc.id) else None
                )
                if not acc.is_active:
                    st.caption("inactive")

    st.subheader("➕ New Account")
    with st.form("account_form", clear_on_submit=True):
        acc_name = st.text_input("Name")
        acc_type = st.selectbox("Type", list(ACCOUNT_TYPES), index=list(ACCOUNT_TYPES).index("savings"))
        balance = st.number_input("Balance", value=0.0, step=100.0)
        rate = st.number_input("Expected return (%/yr)", value=5.0, step=0.5)
        if st.form_submit_button("Create"):
            st.session_state.accounts, _ = create_account(accounts, acc_name, acc_type, balance, rate / 100)
            st.rerun()

    if accounts:
        st.subheader("✏️ Edit Account")
        by_name = {a.name: a for a in accounts}
        acc = by_name[st.selectbox("Account", list(by_name))]
        with st.form(f"edit_{acc.id}"):
            new_name = st.text_input("Name", value=acc.name)
            new_balance = st.number_input("Balance", value=float(acc.balance), step=100.0)
            new_rate = st.number_input("Expected return (%/yr)", value=acc.expected_return * 100, step=0.5)
            active = st.checkbox("Active", value=acc.is_active)
            if st.form_submit_button("Save"):
                result = update_account(
                    accounts, acc.id, name=new_name, balance=new_balance,
                    expected_return=new_rate / 100, is_active=active,
                )
                if result.is_right():
                    st.session_state.accounts = result.get_or_else(accounts)
                    st.rerun()
                else:
                    st.error(result.get_error()["message"])

        deps = dependent_entries(entries, acc.id)
        if st.button("🗑 Delete account"):
            st.session_state.pending_delete = acc.id

        if st.session_state.pending_delete == acc.id:
            result = delete_account(accounts, entries, acc.id)
            if result.is_left() and result.get_error()["error"] == "delete_cancelled":
                st.warning(
                    f"{len(deps)} allocation(s) feed this account: "
                    + ", ".join(e.name for e in deps)
                    + ". Deleting removes them too."
                )
                confirmed = st.button("Confirm delete")
                if confirmed:
                    result = delete_account(accounts, entries, acc.id, confirm=True)
                elif st.button("Cancel"):
                    st.session_state.pending_delete = None
                    st.rerun()
            if result.is_right():
                st.session_state.accounts, st.session_state.entries = result.get_or_else((accounts, entries))
                st.session_state.pending_delete = None
                for out in event_bus.publish(ACCOUNT_DELETED, {"account_name": acc.name, "removed_entries": len(deps)}):
                    st.session_state.alerts.append(out["alert"])
                st.rerun()

    for alert in st.session_state.alerts[-5:]:
        st.info(alert)

elif menu == "📈 Projections":
    st.title("📈 Projections")

    contributions = summary["contributions"]
    worth = summary["net_worth"]
    months = summary.get("months_to_target")

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Net Worth", f"${worth:,.0f}")
    with k2:
        st.metric(f"Wealth Building ({view})", money(totals.wealth_building))
    with k3:
        st.metric("Weighted Return", f"{summary['weighted_return']:.2%}")
    with k4:
        st.metric("Passive Income / yr", f"${summary['passive_income']:,.0f}")

    if months is not None:
        st.success(f"Target of ${target:,.0f} reached in {months // 12} years {months % 12} months")
    elif target > 0:
        st.warning(f"Target of ${target:,.0f} is not reachable within 50 years at the current rate")

    for out in event_bus.publish(TARGET_REACHED, {"net_worth": worth, "target": target}):
        if "alert" in out:
            st.balloons()
            st.info(out["alert"])

    years = st.slider("Years", min_value=1, max_value=50, value=20)
    active_accounts = tuple(a for a in accounts if a.is_active)
    table = projection_table(active_accounts, contributions, years)
    total_column = table.attrs["total_column"]
    fig = px.area(
        table.drop(columns=total_column).reset_index(),
        x="year",
        y=[c for c in table.columns if c != total_column],
        labels={"value": "Projected value", "variable": "Account"},
        title="Projected Account Values",
        template="plotly_dark"
    )
    st.plotly_chart(fig, use_container_width=True)
    st.dataframe(table.round(0), use_container_width=True)
