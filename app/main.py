import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import date

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from tracker import selection as sel
from tracker.domain import DANGER, EXPENSE, INCOME, AlertThresholdConfig
from tracker.exceptions import NotFoundError, ValidationError
from tracker.money import format_amount, to_amount
from tracker.reports import monthly_overview, trailing_months
from tracker.services import TrackerService
from tracker.settings import YamlSettings, load_config, merge_category_limits, setup_logging
from tracker.storage import JsonFileStorage

CONFIG_PATH = os.environ.get("TRACKER_CONFIG", "config.yaml")

st.set_page_config(page_title="Pocket Tracker", layout="wide")


@st.cache_resource
def get_service() -> TrackerService:
    config = load_config(CONFIG_PATH)
    setup_logging(config)
    storage = JsonFileStorage(config["storage"]["path"])
    wallets, categories = storage.load_directory()
    svc = TrackerService(
        storage=storage,
        settings=YamlSettings(CONFIG_PATH),
        categories=categories,
        wallets=wallets,
    )
    svc.start()
    return svc


svc = get_service()
wallets = svc.wallets
categories = svc.categories
category_names = {c.id: f"{c.icon} {c.name}".strip() for c in categories}
wallet_names = {w.id: f"{w.icon} {w.name}".strip() for w in wallets}

if "view" not in st.session_state:
    st.session_state.view = sel.for_date(date.today())
view = st.session_state.view


def tx_to_df(tx_list):
    rows = [
        {
            "id": t.id,
            "date": pd.to_datetime(t.date),
            "type": t.type,
            "amount": float(t.amount),
            "category": category_names.get(t.category_id, "-"),
            "wallet": wallet_names.get(t.wallet_id, t.wallet_id),
            "note": t.note,
            "new": "●" if t.id in svc.ledger.recent_ids else "",
        }
        for t in tx_list
    ]
    return pd.DataFrame(rows, columns=["id", "date", "type", "amount", "category", "wallet", "note", "new"])


def describe(tid):
    t = svc.get_by_id(tid)
    return f"{t.date} {t.type} {format_amount(t.amount)} {category_names.get(t.category_id, '')}"


# ---- sidebar: view selection
st.sidebar.markdown("### 👛 Wallet")
wallet_options = [None] + [w.id for w in wallets]
wallet_choice = st.sidebar.selectbox(
    "Wallet",
    options=wallet_options,
    index=wallet_options.index(view.wallet_id) if view.wallet_id in wallet_options else 0,
    format_func=lambda wid: "All wallets" if wid is None else wallet_names.get(wid, wid),
)
view = sel.with_wallet(view, wallet_choice)

c_prev, c_label, c_next = st.sidebar.columns([1, 2, 1])
if c_prev.button("◀"):
    view = sel.previous_month(view)
if c_next.button("▶"):
    view = sel.next_month(view)
c_label.markdown(f"**{view.month:%B %Y}**")

day_filter = st.sidebar.checkbox("Filter by day", value=view.day is not None)
if day_filter:
    picked = st.sidebar.date_input("Day", value=view.day or view.month)
    try:
        view = sel.with_day(view, picked)
    except ValidationError as e:
        st.sidebar.warning(e.message)
else:
    view = sel.with_day(view, None)
st.session_state.view = view

menu = st.sidebar.radio("Menu", ["🏠 Home", "➕ Add", "⚙️ Alerts", "📈 Trend"])

dashboard = svc.dashboard(view)
agg = dashboard.aggregates

if menu == "🏠 Home":
    k1, k2, k3 = st.columns(3)
    with k1:
        st.metric("Balance", format_amount(agg.selected_balance))
    with k2:
        st.metric("Income", format_amount(agg.monthly_summary.income))
    with k3:
        st.metric("Expense", format_amount(agg.monthly_summary.expense))

    if svc.ledger.last_added_type is not None:
        st.toast("Saved!")
        svc.ledger.last_added_type = None

    for alert in dashboard.alerts:
        if alert.severity == DANGER:
            st.error(f"**{alert.title}**  \n{alert.description}")
        else:
            st.warning(f"**{alert.title}**  \n{alert.description}")

    if not agg.daily_summaries:
        st.info("No transactions in this period.")
    for ds in reversed(agg.daily_summaries):
        st.subheader(f"{ds.date:%a %d %b}")
        st.caption(f"+{format_amount(ds.income)}  /  -{format_amount(ds.expense)}")
        df_day = tx_to_df(ds.transactions)
        st.dataframe(df_day.drop(columns=["id"]), use_container_width=True, hide_index=True)

    st.header("✏️ Edit transaction")
    month_ids = [t.id for t in agg.month_transactions]
    if month_ids:
        edit_id = st.selectbox(
            "Transaction",
            options=month_ids,
            format_func=describe,
        )
        current = svc.get_by_id(edit_id)
        with st.form("edit_tx"):
            new_amount = st.text_input("Amount", value=str(current.amount))
            new_date = st.date_input("Date", value=current.date)
            new_note = st.text_input("Note", value=current.note)
            save = st.form_submit_button("💾 Save")
            remove = st.form_submit_button("🗑 Delete")
        try:
            if save:
                svc.update(edit_id, {"amount": new_amount, "date": new_date, "note": new_note})
                st.rerun()
            if remove:
                svc.delete(edit_id)
                st.rerun()
        except (ValidationError, NotFoundError) as e:
            st.error(str(e))

elif menu == "➕ Add":
    st.title("➕ New transaction")
    tx_type = st.radio("Type", [EXPENSE, INCOME], horizontal=True)
    kind_cats = [c for c in categories if c.kind == tx_type]
    with st.form("add_tx"):
        amount = st.text_input("Amount", value="")
        tx_date = st.date_input("Date", value=view.day or date.today())
        cat_id = st.selectbox(
            "Category",
            options=[None] + [c.id for c in kind_cats],
            format_func=lambda cid: "Uncategorized" if cid is None else category_names[cid],
        )
        wallet_id = st.selectbox(
            "Wallet",
            options=[w.id for w in wallets] or ["default"],
            format_func=lambda wid: wallet_names.get(wid, wid),
        )
        note = st.text_input("Note")
        submitted = st.form_submit_button("Add")
    if submitted:
        try:
            svc.add({
                "type": tx_type,
                "amount": amount,
                "date": tx_date,
                "category_id": cat_id,
                "wallet_id": wallet_id,
                "note": note,
            })
            st.success("Saved!")
        except ValidationError as e:
            st.error(str(e))

elif menu == "⚙️ Alerts":
    st.title("⚙️ Alert settings")
    settings = svc.settings
    current = settings.snapshot()
    with st.form("alerts"):
        target_on = st.checkbox("Monthly expense target", value=current.monthly_target_enabled)
        target = st.text_input("Target", value="" if current.monthly_target is None else str(current.monthly_target))
        limits_on = st.checkbox("Category limits", value=current.category_limits_enabled)
        existing = {cl.category_id: cl.limit for cl in current.category_limits}
        limit_inputs = {}
        for c in (c for c in categories if c.kind == EXPENSE):
            value = existing.get(c.id)
            limit_inputs[c.id] = st.text_input(category_names[c.id], value="" if value is None else str(value))
        saved = st.form_submit_button("Save")
    if saved:
        try:
            limits = merge_category_limits(current.category_limits, limit_inputs)
            settings.save(AlertThresholdConfig(
                monthly_target_enabled=target_on,
                monthly_target=to_amount(target) if target.strip() else None,
                category_limits_enabled=limits_on,
                category_limits=limits,
            ))
            st.success("Settings saved")
        except ValueError as e:
            st.error(str(e))

elif menu == "📈 Trend":
    st.title("📈 Last 12 months")
    months = trailing_months(view.month, 12)
    overview = asyncio.run(monthly_overview(svc.aggregator, svc.ledger.snapshot(), months, view))
    labels = [m.strftime("%b %y") for m in months]

    fig_ts = go.Figure()
    fig_ts.add_trace(go.Scatter(x=labels, y=[float(overview[m].income) for m in months], mode="lines+markers", name="Income"))
    fig_ts.add_trace(go.Scatter(x=labels, y=[float(overview[m].expense) for m in months], mode="lines+markers", name="Expense"))
    fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_ts, use_container_width=True)

    df_month = tx_to_df(agg.month_transactions)
    df_exp = df_month[df_month["type"] == EXPENSE]
    if not df_exp.empty:
        df_cat = df_exp.groupby("category", as_index=False)["amount"].sum()
        fig_cat = px.pie(df_cat, values="amount", names="category", title=f"Expenses by category, {view.month:%B %Y}")
        st.plotly_chart(fig_cat, use_container_width=True)
    else:
        st.info("No expenses this month.")
