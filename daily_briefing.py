"""
Daily Briefing for Networking Engine
Prints today's recommended actions, scores and weekly summary.
Optionally posts the briefing to a Discord webhook.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from datetime import date

import requests

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import config
from core.cache import SnapshotStore
from core.company_resolver import backfill_company_ids
from core.dashboard_data import DashboardView, load_dashboard
from core.models import parse_date
from core.network_scores import weekly_trend
from core.store import StoreError, open_store
from core.streaks import generate_daily_tasks

logger = logging.getLogger(__name__)


def briefing_data(view: DashboardView) -> dict:
    """Plain-dict form of the view, for --json and the webhook."""
    scores = view.scores
    tier, tier_message = scores.momentum_tier
    return {
        'date': view.today.isoformat(),
        'from_snapshot': view.from_snapshot,
        'actions': [
            {
                'type': a.type,
                'reason': a.reason,
                'contact_id': a.contact.id,
                'contact': a.contact.name,
                'description': a.describe(),
            }
            for a in view.actions
        ],
        'tasks': [
            {'id': t.id, 'description': t.description, 'completed': t.completed}
            for t in view.tasks
        ],
        'network_strength': scores.network_strength,
        'offer_momentum': scores.offer_momentum,
        'momentum_tier': tier,
        'momentum_message': tier_message,
        'warm_paths': scores.warm_paths,
        'weekly': asdict(scores.weekly),
        'streak': asdict(view.streak),
        'badges': [b.name for b in scores.badges if b.earned],
    }


def format_briefing(view: DashboardView) -> str:
    """Format the view as a short text briefing."""
    scores = view.scores
    weekly = scores.weekly
    today = view.today.strftime('%A, %B %d')

    lines = [f"**Daily Briefing: {today}**", ""]
    if view.from_snapshot:
        saved = view.saved_at.strftime('%Y-%m-%d %H:%M') if view.saved_at else "unknown"
        lines += [f"*Offline: showing data saved {saved}*", ""]

    if view.actions:
        lines.append("**Today's Actions:**")
        for action in view.actions:
            lines.append(f"  • {action.describe()}")
        lines.append("")
    else:
        lines += ["No actions today. Add a contact to get started.", ""]

    if view.tasks:
        lines.append(f"**Tasks:** {view.tasks_done}/{len(view.tasks)} done")
        for task in view.tasks:
            mark = "x" if task.completed else " "
            lines.append(f"  [{mark}] {task.description}")
        lines.append("")

    tier, tier_message = scores.momentum_tier
    lines.append(f"**Network Strength:** {scores.network_strength}/100")
    lines.append(f"**Offer Momentum:** {scores.offer_momentum}/100 ({tier}) {tier_message}")
    lines.append(f"**Warm Paths:** {scores.warm_paths} target companies")
    lines.append(f"**Streak:** {view.streak.current_streak} day(s), "
                 f"longest {view.streak.longest_streak}")
    lines.append("")

    _, trend_message = weekly_trend(weekly.network_strength_change)
    change = weekly.network_strength_change
    change_text = f"{change:+d}" if change is not None else "n/a"
    lines.append("**This Week:**")
    lines.append(f"  • {weekly.interactions_this_week} interactions, "
                 f"{weekly.warm_contacts} warm contacts")
    lines.append(f"  • {weekly.cooling_saved} kept warm, {weekly.new_paths} new paths")
    lines.append(f"  • Strength change: {change_text} ({trend_message})")

    earned = [b.name for b in scores.badges if b.earned]
    if earned:
        lines.append("")
        lines.append(f"**Badges:** {', '.join(earned)}")

    return "\n".join(lines)


def send_discord(message: str) -> bool:
    """Post the briefing via Discord webhook."""
    webhook_url = os.environ.get("DISCORD_WEBHOOK_URL", "")
    if not webhook_url:
        logger.warning("DISCORD_WEBHOOK_URL not configured")
        return False

    try:
        resp = requests.post(webhook_url, json={"content": message}, timeout=10)
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Failed to send briefing: {e}")
        return False
    logger.info("Briefing sent to Discord")
    return True


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Daily networking briefing")
    parser.add_argument("--db", type=str, default=None,
                        help="Database path (optional)")
    parser.add_argument("--user", type=str, default=None,
                        help="User id (defaults to NE_USER_ID)")
    parser.add_argument("--date", type=str, default=None,
                        help="Briefing date YYYY-MM-DD (default today)")
    parser.add_argument("--json", action="store_true",
                        help="Print JSON instead of text")
    parser.add_argument("--generate-tasks", action="store_true",
                        help="Save today's actions as daily tasks")
    parser.add_argument("--discord", action="store_true",
                        help="Also post the briefing to DISCORD_WEBHOOK_URL")
    parser.add_argument("--backfill", action="store_true",
                        help="Link contacts to companies by name before loading")

    args = parser.parse_args(argv)
    config.setup_logging()

    today = date.today()
    if args.date:
        today = parse_date(args.date)
        if today is None:
            print(f"Error: invalid --date {args.date!r}, expected YYYY-MM-DD")
            return 1

    store = open_store(args.db, args.user)
    if not store.current_user():
        print("Error: no user; pass --user or set NE_USER_ID")
        return 1

    if args.backfill:
        linked = backfill_company_ids(store)
        logger.info(f"Linked {linked} contact(s) to companies")

    view = load_dashboard(store, snapshot_store=SnapshotStore(config.SNAPSHOT_PATH), now=today)

    if args.generate_tasks and not view.from_snapshot:
        try:
            created = generate_daily_tasks(store, view.actions, today)
        except StoreError as e:
            logger.error(f"Task generation failed: {e}")
            print(f"Error: could not save today's tasks ({e}); try again later")
            return 1
        if created:
            view = load_dashboard(store, now=today)

    if args.json:
        print(json.dumps(briefing_data(view), indent=2, default=str))
    else:
        message = format_briefing(view)
        print("\n" + message + "\n")
        if args.discord:
            send_discord(message)

    return 0


if __name__ == "__main__":
    sys.exit(main())
