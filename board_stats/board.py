"""Fetch the board from Trello and turn it into dashboard numbers."""

import logging

from board_stats.stats import (
    buckets_to_json,
    classify_label,
    daily_stats,
    done_task_counts,
    extract_events,
    weekly_stats,
)

logger = logging.getLogger(__name__)


def fetch_done_tasks(client) -> dict:
    lists = client.get_board_lists()
    return done_task_counts(client.get_lists_with_cards(lists))


def fetch_completion_events(client) -> list:
    """All "Done!" completion events found on the board's done lists."""
    lists = [l for l in client.get_board_lists() if classify_label(l.get('name')).done]
    lists_with_cards = client.get_lists_with_cards(lists)

    # one fan-out over every card on the board, not one per list
    all_cards = [card for _, cards in lists_with_cards for card in cards]
    with_actions = iter(client.get_cards_with_actions(all_cards))
    regrouped = [(lst, [next(with_actions) for _ in cards]) for lst, cards in lists_with_cards]

    events = extract_events(regrouped)
    logger.debug('Found %d completion events on %d done lists', len(events), len(lists))
    return events


def build_statistics(events, now, days, weeks) -> dict:
    return {
        'daily': buckets_to_json(daily_stats(events, now, days)),
        'weekly': buckets_to_json(weekly_stats(events, now, weeks)),
    }
