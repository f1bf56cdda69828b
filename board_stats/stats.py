"""Classification of board lists and aggregation of completion counts.

List names are free text. A list belongs to Eve or Dima when its lowercased
name contains that owner's tag, checked in that order, so a name containing
both tags counts for Eve only and a name containing neither counts only
towards totals.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, NamedTuple, Optional

from board_stats.dates import day_key, parse_done_date, range_start, week_key

OWNERS = ('eve', 'dima')


class LabelClass(NamedTuple):
    owner: Optional[str]
    done: bool
    pending: bool


class CompletionEvent(NamedTuple):
    owner: Optional[str]
    timestamp: datetime  # aware, UTC


def classify_label(name: str) -> LabelClass:
    label = (name or '').lower()
    owner = next((tag for tag in OWNERS if tag in label), None)
    return LabelClass(
        owner=owner,
        done='done' in label,
        pending='today' in label or 'week' in label,
    )


@dataclass(frozen=True)
class StatBucket:
    eve: int = 0
    dima: int = 0
    total: int = 0

    def add(self, owner: Optional[str]) -> 'StatBucket':
        bucket = replace(self, total=self.total + 1)
        if owner in OWNERS:
            bucket = replace(bucket, **{owner: getattr(self, owner) + 1})
        return bucket

    def to_dict(self) -> dict:
        return {'eve': self.eve, 'dima': self.dima, 'total': self.total}


def extract_events(lists_with_cards) -> list:
    """Collect "Done!" comments from done lists.

    lists_with_cards is [(list, cards)] where every card carries its comment
    actions under 'actions'. Malformed action dates raise ValueError.
    """
    events = []
    for lst, cards in lists_with_cards:
        label = classify_label(lst.get('name'))
        if not label.done:
            continue
        for card in cards:
            for action in card.get('actions') or []:
                done_at = parse_done_date(action)
                if done_at is not None:
                    events.append(CompletionEvent(label.owner, done_at))
    return events


def bucket_events(events: Iterable[CompletionEvent], key_fn: Callable, since) -> Mapping[str, StatBucket]:
    """Count events at or after `since` into buckets keyed by key_fn(timestamp)."""
    buckets = {}
    for event in events:
        if event.timestamp < since:
            continue
        key = key_fn(event.timestamp)
        buckets[key] = buckets.get(key, StatBucket()).add(event.owner)
    return MappingProxyType(dict(sorted(buckets.items())))


def daily_stats(events, now, days):
    return bucket_events(events, day_key, range_start(now, days, 'days'))


def weekly_stats(events, now, weeks):
    return bucket_events(events, week_key, range_start(now, weeks, 'weeks'))


def buckets_to_json(buckets: Mapping[str, StatBucket]) -> dict:
    return {key: bucket.to_dict() for key, bucket in buckets.items()}


def done_task_counts(lists_with_cards) -> dict:
    """Done/pending card counts per owner, from the current list contents."""
    done = dict.fromkeys(OWNERS, 0)
    pending = dict.fromkeys(OWNERS, 0)
    for lst, cards in lists_with_cards:
        label = classify_label(lst.get('name'))
        if label.owner is None:
            continue
        if label.done:
            done[label.owner] += len(cards)
        if label.pending:
            pending[label.owner] += len(cards)

    result = {
        owner: {
            'done': done[owner],
            'total': done[owner] + pending[owner],
            'pending': pending[owner],
        }
        for owner in OWNERS
    }
    result['total'] = {
        'done': sum(done.values()),
        'pending': max(0, sum(pending.values())),
    }
    return result
