import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import calendar
from dataclasses import asdict
from datetime import date, datetime
from uuid import uuid4

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from finquest.badges import badge_progress, claim_badge
from finquest.config import DEFAULT_CURRENCY, SEED_PATH, configure_logging
from finquest.domain import Transaction
from finquest.events import DAILY_CHECKIN, TASK_CLAIMED, TRANSACTION_ADDED, apply_rewards, event_bus
from finquest.filters import by_category, by_month, by_type, iter_transactions, lazy_top_categories, total_amount
from finquest.functional import validate_transaction
from finquest.rewards import BADGES, REDEMPTION_OPTIONS, USD_RATES, format_money
from finquest.rotation import task_board
from finquest.services import AnalysisService
from finquest.streaks import calculate_daily_streak, calculate_monthly_streak, calculate_weekly_streak
from finquest.transforms import (
    add_transaction,
    allocate_savings,
    budget_for_transaction,
    budget_surplus,
    delete_transaction,
    fill_goals,
    find_budget,
    load_seed,
    mark_subscription_paid,
    remaining_to_target,
    settle_surplus,
    shift_month,
    toggle_goal_completion,
    undo_subscription_payment,
    update_goal_target,
)
from finquest.xp import claim_task, daily_check_in, redeem_coins, xp_threshold

configure_logging()
st.set_page_config(page_title="FinQuest", layout="wide")

if "transactions" not in st.session_state:
    transactions, budgets, goals, subscriptions, profile = load_seed(SEED_PATH)
    st.session_state.transactions = transactions
    st.session_state.budgets = budgets
    st.session_state.goals = goals
    st.session_state.subscriptions = subscriptions
    st.session_state.profile = profile

state = st.session_state
today = date.today()
month = today.strftime("%Y-%m")

currencies = sorted(USD_RATES)
currency = st.sidebar.selectbox(
    "Currency", currencies, index=currencies.index(DEFAULT_CURRENCY) if DEFAULT_CURRENCY in currencies else 0
)

state.profile = daily_check_in(state.profile, today)
if state.profile.last_check_in == today.isoformat() and not state.get("checked_in"):
    state.checked_in = True
    rewards = event_bus.publish(DAILY_CHECKIN, {"streak": state.profile.streak})
    state.profile = apply_rewards(state.profile, rewards)

st.sidebar.markdown(f"### Level {state.profile.level}")
st.sidebar.progress(min(1.0, state.profile.xp / xp_threshold(state.profile.level)))
st.sidebar.caption(f"{state.profile.xp} / {xp_threshold(state.profile.level)} XP · {state.profile.coins} coins")


def tx_to_df(tx_list) -> pd.DataFrame:
    df = pd.DataFrame([asdict(t) for t in tx_list], columns=["id", "type", "amount", "category", "date"])
    df["date"] = pd.to_datetime(df["date"].str[:10], errors="coerce")
    return df


def record_transaction(t: Transaction) -> None:
    """Store a transaction, keep its month budgeted and pay out the rewards."""
    state.transactions = add_transaction(state.transactions, t)
    state.budgets = budget_for_transaction(state.budgets, t)
    tx_month = t.date[:7]
    year, mon = map(int, tx_month.split("-"))
    budget = find_budget(state.budgets, tx_month)
    same_day = tuple(iter_transactions(state.transactions, lambda x: x.date[:10] == t.date[:10]))
    rewards = event_bus.publish(TRANSACTION_ADDED, {
        "transaction": t,
        "transaction_count": len(state.transactions),
        "daily_budget": budget.total / calendar.monthrange(year, mon)[1],
        "spent_today": total_amount(same_day, "expense"),
    })
    state.profile = apply_rewards(state.profile, rewards)


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Overview", "🎮 Gamification", "🏅 Badges", "📊 Analysis", "💰 Budget & Savings", "🔁 Subscriptions"],
)

if menu == "🏠 Overview":
    st.title("🏠 Overview")
    df = tx_to_df(state.transactions)

    income = total_amount(state.transactions, "income")
    expenses = total_amount(state.transactions, "expense")
    k1, k2, k3, k4 = st.columns(4)
    k1.metric("Transactions", len(state.transactions))
    k2.metric("Income", format_money(income, currency))
    k3.metric("Expenses", format_money(expenses, currency))
    k4.metric("Daily streak", calculate_daily_streak(state.profile.claimed_tasks, today))

    months = pd.period_range(end=pd.Period(month, freq="M"), periods=12, freq="M")
    if not df.empty and df["date"].notna().any():
        by_month_type = df.groupby([df["date"].dt.to_period("M"), "type"])["amount"].sum().unstack(fill_value=0)
        by_month_type = by_month_type.reindex(months, fill_value=0)
        inc_m = by_month_type.get("income", pd.Series(np.zeros(len(months)), index=months))
        exp_m = by_month_type.get("expense", pd.Series(np.zeros(len(months)), index=months))
    else:
        inc_m = pd.Series(np.zeros(len(months)), index=months)
        exp_m = pd.Series(np.zeros(len(months)), index=months)

    labels = [m.strftime("%b %y") for m in months]
    fig_ts = go.Figure()
    fig_ts.add_trace(go.Scatter(x=labels, y=inc_m.values, mode="lines+markers", name="Income"))
    fig_ts.add_trace(go.Scatter(x=labels, y=exp_m.values, mode="lines+markers", name="Expense"))
    fig_ts.update_layout(template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
    st.plotly_chart(fig_ts, use_container_width=True)

    top = list(lazy_top_categories(state.transactions, 6))
    if top:
        fig_cat = px.pie(pd.DataFrame(top, columns=["Category", "Total"]), values="Total", names="Category",
                         title="Top spending categories")
        st.plotly_chart(fig_cat, use_container_width=True)

    with st.form("add_tx"):
        st.subheader("➕ Add transaction")
        c1, c2, c3 = st.columns(3)
        kind = c1.selectbox("Type", ["expense", "income"])
        amount = c2.number_input("Amount", min_value=0.0, step=1.0)
        category = c3.text_input("Category", value="Food")
        notes = st.text_input("Notes")
        submitted = st.form_submit_button("Add")

    if submitted:
        t = Transaction(
            id=str(uuid4()), type=kind, amount=float(amount), category=category, date=today.isoformat(),
            currency=currency, notes=notes, created_at=datetime.now().isoformat(),
        )
        checked = validate_transaction(t)
        if checked.is_left():
            st.error(checked.get_error()["message"])
        else:
            record_transaction(t)
            st.success("Transaction added")

    st.subheader("Recent transactions")
    f1, f2 = st.columns(2)
    type_filter = f1.selectbox("Show", ["all", "expense", "income"])
    category_filter = f2.text_input("Category filter")
    shown = state.transactions
    if type_filter != "all":
        shown = tuple(iter_transactions(shown, by_type(type_filter)))
    if category_filter:
        shown = tuple(iter_transactions(shown, by_category(category_filter)))
    for t in sorted(shown, key=lambda x: x.date, reverse=True)[:15]:
        row = st.columns([2, 2, 2, 1])
        row[0].write(t.date[:10])
        row[1].write(t.category)
        row[2].write(("+" if t.type == "income" else "-") + format_money(t.amount, currency))
        if row[3].button("🗑", key=f"del_{t.id}"):
            state.transactions = delete_transaction(state.transactions, t.id)
            st.rerun()

elif menu == "🎮 Gamification":
    st.title("🎮 Gamification")
    p = state.profile
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Level", p.level)
    c2.metric("Coins", p.coins)
    c3.metric("Total XP", p.total_xp)
    c4.metric("Check-in streak", p.streak)

    s1, s2, s3 = st.columns(3)
    s1.metric("Daily task streak", calculate_daily_streak(p.claimed_tasks, today))
    s2.metric("Weekly task streak", calculate_weekly_streak(p.claimed_tasks, today))
    s3.metric("Monthly task streak", calculate_monthly_streak(p.claimed_tasks, today))

    for kind, label in (("daily", "Daily"), ("weekly", "Weekly"), ("monthly", "Monthly")):
        st.subheader(f"{label} tasks")
        for status in task_board(kind, today, currency, state.transactions, state.profile.claimed_tasks):
            row = st.columns([4, 1, 1])
            row[0].markdown(f"**{status.task.title}** · {status.task.description}")
            row[0].progress(min(1.0, status.progress / status.task.total))
            row[1].caption(f"+{status.task.reward} XP")
            if status.is_claimed:
                row[2].caption("Claimed")
            elif row[2].button("Claim", key=status.claim.key, disabled=not status.is_complete):
                claimed = claim_task(state.profile, status.claim, status.task.reward, status.is_complete)
                if claimed.is_right():
                    rewards = event_bus.publish(TASK_CLAIMED, {"task_id": status.task.id, "reward": status.task.reward})
                    state.profile = apply_rewards(claimed.get_or_else(state.profile), rewards)
                    st.rerun()
                st.warning(claimed.get_error()["message"])

    st.subheader("🎁 Redeem coins")
    option = st.selectbox("Reward", list(REDEMPTION_OPTIONS), format_func=lambda v: f"{v} for {REDEMPTION_OPTIONS[v]:,} coins")
    payout_id = st.text_input("Payout id")
    if st.button("Redeem"):
        redeemed = redeem_coins(state.profile, option, payout_id)
        if redeemed.is_right():
            state.profile = redeemed.get_or_else(state.profile)
            st.success("Redemption requested")
        else:
            st.error(redeemed.get_error()["message"])

    if p.history:
        st.subheader("History")
        st.dataframe(pd.DataFrame([asdict(h) for h in p.history]), use_container_width=True)

elif menu == "🏅 Badges":
    st.title("🏅 Badges")
    cols = st.columns(3)
    for idx, badge in enumerate(BADGES.values()):
        progress = badge_progress(badge.id, state.transactions, state.profile.claimed_tasks,
                                  state.profile.streak, state.budgets, today)
        with cols[idx % 3]:
            unlocked = badge.id in state.profile.badges
            st.markdown(f"### {badge.icon} {badge.name}")
            st.caption(badge.description)
            st.progress(min(1.0, progress.current / progress.target) if progress.target else 0.0)
            st.caption(f"{progress.current} / {progress.target} {progress.unit}")
            if unlocked:
                st.success("Unlocked")
            elif progress.is_complete and st.button("Claim", key=f"badge_{badge.id}"):
                claimed = claim_badge(state.profile, badge.id, state.transactions, state.budgets, today)
                state.profile = claimed.get_or_else(state.profile)
                st.rerun()

elif menu == "📊 Analysis":
    st.title("📊 Analysis")
    report = AnalysisService().analyze(state.transactions, state.budgets, today)
    result = report["result"]
    c1, c2, c3 = st.columns(3)
    c1.metric("Financial health", f"{result.get('health_score', 0)}/100", result.get("health_label"))
    c2.metric("Discipline", f"{result.get('discipline_score', 0)}/100")
    c3.metric("Consistency", f"{result.get('consistency_score', 0)}/100")

    burn = result.get("burn_rate")
    if burn is not None:
        b1, b2, b3 = st.columns(3)
        b1.metric("Daily burn", format_money(burn.daily_burn_rate, currency))
        b2.metric("Projected spend", format_money(burn.projected_spend, currency))
        b3.metric("Days until budget runs out", burn.days_until_exhaustion)

    fig = go.Figure(go.Bar(
        x=["Health", "Discipline", "Consistency"],
        y=[result.get("health_score", 0), result.get("discipline_score", 0), result.get("consistency_score", 0)],
    ))
    fig.update_layout(template="plotly_dark", yaxis_range=[0, 100])
    st.plotly_chart(fig, use_container_width=True)

    for note in result.get("insights", []):
        st.markdown(f"- {note}")

elif menu == "💰 Budget & Savings":
    st.title("💰 Budget & Savings")
    budget = find_budget(state.budgets, month)
    if budget is None:
        st.info("No budget for this month yet; one is created with your first transaction.")
    else:
        spent = total_amount(iter_transactions(state.transactions, by_month(month)), "expense")
        st.metric("This month", f"{format_money(spent, currency)} / {format_money(budget.total, currency)}")

    previous = find_budget(state.budgets, shift_month(month, -1))
    if previous is not None and previous.surplus_action is None:
        surplus = budget_surplus(previous, state.transactions)
        st.subheader(f"Surplus from {previous.month}: {format_money(max(surplus, 0), currency)}")
        c1, c2 = st.columns(2)
        roll = c1.button("Roll into this month")
        save = c2.button("Move to savings")
        action = "rollover" if roll else "saved" if save else None
        if action or surplus <= 0:
            settled = settle_surplus(state.budgets, state.transactions, previous.month, action or "ignored")
            if settled.is_right():
                state.budgets, to_savings = settled.get_or_else((state.budgets, 0.0))
                if to_savings > 0:
                    state.goals, unallocated = fill_goals(state.goals, to_savings)
                    if unallocated > 0:
                        st.info(f"{format_money(unallocated, currency)} left over after filling every goal")

    st.subheader("Savings goals")
    for goal in state.goals:
        done = " ✅" if goal.is_completed else ""
        st.markdown(f"**{goal.name}**{done} · {format_money(goal.current_amount, currency)} of "
                    f"{format_money(goal.target_amount, currency)}")
        st.progress(min(1.0, goal.current_amount / goal.target_amount) if goal.target_amount else 0.0)
        g1, g2, g3 = st.columns(3)
        target = g1.number_input("Target", min_value=1.0, value=float(goal.target_amount), key=f"target_{goal.id}")
        if target != goal.target_amount:
            state.goals = update_goal_target(state.goals, goal.id, target)
        step = min(goal.target_amount / 10, remaining_to_target(goal))
        if g2.button("Add 10%", key=f"fund_{goal.id}", disabled=step <= 0):
            funded = allocate_savings(state.goals, goal.id, step)
            if funded.is_right():
                state.goals = funded.get_or_else(state.goals)
                st.rerun()
            st.warning(funded.get_error()["message"])
        if g3.button("Reopen" if goal.is_completed else "Mark complete", key=f"done_{goal.id}"):
            state.goals = toggle_goal_completion(state.goals, goal.id)
            st.rerun()

elif menu == "🔁 Subscriptions":
    st.title("🔁 Subscriptions")
    for sub in state.subscriptions:
        row = st.columns([3, 1, 1])
        row[0].markdown(f"**{sub.title}** · {format_money(sub.amount, currency)} · next {sub.billing_date}")
        row[1].caption(sub.interval)
        if sub.is_paid:
            if row[2].button("Undo", key=f"undo_{sub.id}"):
                undone = undo_subscription_payment(state.subscriptions, state.transactions, sub.id)
                state.subscriptions, state.transactions = undone.get_or_else((state.subscriptions, state.transactions))
                st.rerun()
        elif row[2].button("Mark paid", key=f"pay_{sub.id}"):
            t = Transaction(
                id=str(uuid4()), type="expense", amount=sub.amount, category=sub.category or "Subscriptions",
                date=today.isoformat(), currency=currency, merchant=sub.title, payment_method=sub.payment_method,
                created_at=datetime.now().isoformat(),
            )
            paid = mark_subscription_paid(state.subscriptions, sub.id, t.id, today)
            if paid.is_right():
                state.subscriptions = paid.get_or_else(state.subscriptions)
                record_transaction(t)
                st.rerun()
