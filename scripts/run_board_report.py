import argparse
import json
import logging
import os
import sys

# Add project root to sys.path to allow imports from board_stats
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from board_stats.board import build_statistics, fetch_completion_events, fetch_done_tasks
from board_stats.config import ConfigError, load_config, load_env_file, parse_positive_int
from board_stats.dates import (
    MAX_LOOKBACK_DAYS,
    MAX_LOOKBACK_WEEKS,
    format_date_for_display,
    format_week_for_display,
    parse_timestamp,
    utc_now,
)
from board_stats.trello import TrelloClient, TrelloError


def lookback(name, maximum):
    def parse(raw):
        try:
            return parse_positive_int(name, raw, maximum)
        except ValueError as e:
            raise argparse.ArgumentTypeError(str(e)) from None
    return parse


def format_done_tasks(counts):
    lines = [
        "| Person | Done | Pending | Total |",
        "|---|---|---|---|",
    ]
    for owner in ('eve', 'dima'):
        c = counts[owner]
        lines.append(f"| {owner.title()} | {c['done']} | {c['pending']} | {c['total']} |")
    t = counts['total']
    lines.append(f"| All | {t['done']} | {t['pending']} | {t['done'] + t['pending']} |")
    return "\n".join(lines)


def format_buckets(buckets, label):
    if not buckets:
        return "No completions."
    lines = []
    for key, b in buckets.items():
        lines.append(f"- {label(key)}: {b['total']} (Eve {b['eve']}, Dima {b['dima']})")
    return "\n".join(lines)


def generate_markdown_report(board_name, counts, stats, days, weeks):
    report = f"# {board_name} ({format_date_for_display(utc_now())})\n\n"

    report += "## Tasks\n\n"
    report += format_done_tasks(counts) + "\n\n"

    report += f"## Completions, last {days} days\n\n"
    report += format_buckets(stats['daily'], lambda k: format_date_for_display(parse_timestamp(k))) + "\n\n"

    report += f"## Completions, last {weeks} weeks\n\n"
    report += format_buckets(stats['weekly'], format_week_for_display) + "\n"

    return report


def main(argv=None):
    parser = argparse.ArgumentParser(description="Print done/pending counts and completion trends for the board.")
    parser.add_argument('--days', type=lookback('--days', MAX_LOOKBACK_DAYS), help="daily lookback window")
    parser.add_argument('--weeks', type=lookback('--weeks', MAX_LOOKBACK_WEEKS), help="weekly lookback window")
    parser.add_argument('--json', action='store_true', help="print JSON instead of Markdown")
    args = parser.parse_args(argv)

    load_env_file()
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    days = config.daily_days if args.days is None else args.days
    weeks = config.weekly_weeks if args.weeks is None else args.weeks
    client = TrelloClient(config)

    try:
        board = client.get_board_info()
        counts = fetch_done_tasks(client)
        events = fetch_completion_events(client)
    except (TrelloError, ValueError) as e:
        print(f"Error fetching Trello data: {e}", file=sys.stderr)
        return 1

    stats = build_statistics(events, utc_now(), days, weeks)
    if args.json:
        print(json.dumps({'doneTasks': counts, **stats}, indent=2))
    else:
        print(generate_markdown_report(board.get('name') or config.board_id, counts, stats, days, weeks))
    return 0


if __name__ == "__main__":
    sys.exit(main())
