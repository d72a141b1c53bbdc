"""
Networking Engine Dashboard: Streamlit view over today's data.

Run: streamlit run dashboard.py

Sections:
  1. Scores: network strength, offer momentum, warm paths, streak
  2. Today's actions with a draft message per contact
  3. Today's tasks (checkbox completes the task and advances the streak)
  4. Follow-ups due today
  5. Weekly summary and badges
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
import config

import streamlit as st
from core.cache import ReadThroughCache, SnapshotStore, store_fetcher
from core.dashboard_data import load_dashboard, paint_from_snapshot
from core.message_drafts import draft_message, mailto_link
from core.network_scores import weekly_trend
from core.outreach_manager import set_follow_up_completed
from core.store import StoreError, open_store
from core.streaks import complete_task

st.set_page_config(page_title="Networking Engine", page_icon="🤝", layout="wide")
config.setup_logging()


@st.cache_resource
def get_store():
    return open_store()


@st.cache_resource
def get_cache(_store):
    return ReadThroughCache(store_fetcher(_store))


store = get_store()
cache = get_cache(store)
snapshots = SnapshotStore(config.SNAPSHOT_PATH)


def show_scores(view):
    scores = view.scores
    tier, tier_message = scores.momentum_tier
    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Network Strength", f"{scores.network_strength}/100",
              delta=scores.weekly.network_strength_change)
    m2.metric("Offer Momentum", f"{scores.offer_momentum}/100")
    m3.metric("Warm Paths", scores.warm_paths)
    m4.metric("Streak", f"{view.streak.current_streak} days",
              help=f"Longest: {view.streak.longest_streak}")
    st.progress(scores.offer_momentum / 100, text=f"{tier.title()}: {tier_message}")


# =============================================================================
# LOAD
# =============================================================================

st.title("🤝 Networking Engine")

if not store.current_user():
    st.warning("No user configured. Set NE_USER_ID in .env.")
    st.stop()

placeholder = st.empty()
early = paint_from_snapshot(snapshots)
if early is not None:
    saved = early.saved_at.strftime('%Y-%m-%d %H:%M') if early.saved_at else "unknown"
    with placeholder.container():
        st.caption(f"Loading... showing data saved {saved}")
        show_scores(early)
        for action in early.actions:
            st.markdown(f"- {action.describe()}")

view = load_dashboard(store, cache=cache, snapshot_store=snapshots)
placeholder.empty()

if view.from_snapshot:
    saved = view.saved_at.strftime('%Y-%m-%d %H:%M') if view.saved_at else "never"
    st.warning(f"Could not reach the store. Showing data saved {saved}.")
elif view.is_stale:
    st.caption("Showing cached data; refreshing in the background.")

# =============================================================================
# SCORES
# =============================================================================

scores = view.scores
show_scores(view)
st.markdown("---")

# =============================================================================
# ACTIONS + TASKS
# =============================================================================

col_actions, col_tasks = st.columns(2)

with col_actions:
    st.subheader("🎯 Today's Actions")
    if view.actions:
        for action in view.actions:
            contact = action.contact
            st.markdown(f"**{action.describe()}**")
            company = action.metadata.get('company_name') or contact.company
            with st.expander(f"Draft message to {contact.name}"):
                body = st.text_area("Message", draft_message(contact.name, company),
                                    key=f"msg_{contact.id}", height=160)
                link = mailto_link(contact.email, contact.name, company, body)
                if link:
                    st.markdown(f"[Open in email]({link})")
                else:
                    st.caption("No email on file")
    else:
        st.info("No contacts yet. Add one to get today's actions.")

with col_tasks:
    st.subheader(f"✅ Today's Tasks ({view.tasks_done}/{len(view.tasks)})")
    if view.tasks:
        for task in view.tasks:
            checked = st.checkbox(task.description, value=task.completed,
                                  key=f"task_{task.id}", disabled=view.from_snapshot)
            if checked != task.completed:
                try:
                    complete_task(store, task.id, checked, view.today)
                except StoreError as e:
                    st.error(f"Could not update the task: {e}")
                else:
                    st.rerun()
    else:
        st.info("No tasks for today. Run `python daily_briefing.py --generate-tasks`.")

    st.subheader("📅 Follow-ups Due Today")
    if view.follow_ups_due:
        for fu in view.follow_ups_due:
            fc1, fc2 = st.columns([4, 1])
            name = fu.contact.name if fu.contact else "Unknown contact"
            with fc1:
                st.markdown(f"**{name}**" + (f": {fu.note}" if fu.note else ""))
            with fc2:
                if st.button("Done", key=f"fu_done_{fu.id}", disabled=view.from_snapshot):
                    try:
                        set_follow_up_completed(store, fu.id, True, cache=cache)
                    except StoreError as e:
                        st.error(f"Could not update the follow-up: {e}")
                    else:
                        st.rerun()
    else:
        st.success("No follow-ups due today.")

st.markdown("---")

# =============================================================================
# WEEKLY SUMMARY
# =============================================================================

weekly = scores.weekly
_, trend_message = weekly_trend(weekly.network_strength_change)

st.subheader(f"📊 This Week: {trend_message}")
w1, w2, w3, w4 = st.columns(4)
w1.metric("Interactions", weekly.interactions_this_week)
w2.metric("Warm Contacts", weekly.warm_contacts)
w3.metric("Kept Warm", weekly.cooling_saved)
w4.metric("New Paths", weekly.new_paths)

earned = [b for b in scores.badges if b.earned]
if earned:
    st.markdown("**Badges:** " + " · ".join(b.name for b in earned))
locked = [b for b in scores.badges if not b.earned]
if locked:
    st.caption("Next up: " + ", ".join(f"{b.name} ({b.description})" for b in locked[:3]))
