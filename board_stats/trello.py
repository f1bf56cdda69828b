import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import requests

logger = logging.getLogger(__name__)


class TrelloError(Exception):
    """A Trello request failed (bad status or transport error)."""

    def __init__(self, message, url, status=None):
        super().__init__(message)
        self.url = url
        self.status = status


def fan_out(fn, items, max_workers):
    """Run fn over items concurrently, at most max_workers at a time.

    Results come back in input order. The first failure stops work that
    has not started yet and is re-raised.
    """
    items = list(items)
    if not items:
        return []
    failed = threading.Event()

    def run(item):
        if failed.is_set():
            return None
        try:
            return fn(item)
        except Exception:
            failed.set()
            raise

    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        futures = [executor.submit(run, item) for item in items]
        try:
            return [f.result() for f in futures]
        except Exception:
            for f in futures:
                f.cancel()
            raise


class TrelloClient:
    def __init__(self, config, session=None):
        self.config = config
        self._shared_session = session
        self._local = threading.local()

    @property
    def session(self):
        # requests.Session is not thread-safe; fan-out workers each get their own
        if self._shared_session is not None:
            return self._shared_session
        if not hasattr(self._local, 'session'):
            self._local.session = requests.Session()
        return self._local.session

    def get(self, path, params=None):
        url = f'{self.config.api_base}{path}'
        params = dict(params or {})
        params.update({'key': self.config.trello_key, 'token': self.config.trello_token})
        try:
            r = self.session.get(url, params=params, timeout=self.config.request_timeout)
        except requests.RequestException as e:
            logger.error('Trello request to %s failed: %s', url, e)
            raise TrelloError(f'Trello request failed: {e}', url) from e
        if r.status_code >= 400:
            logger.error('Trello request to %s returned HTTP %s', url, r.status_code)
            raise TrelloError(f'Trello HTTP {r.status_code}', url, r.status_code)
        return r.json()

    def get_board_info(self):
        return self.get(f'/boards/{self.config.board_id}')

    def get_board_lists(self):
        return self.get(f'/boards/{self.config.board_id}/lists')

    def get_list_cards(self, list_id):
        return self.get(f'/lists/{list_id}/cards')

    def get_card(self, card_id):
        return self.get(f'/cards/{card_id}')

    def get_card_comments(self, card_id):
        return self.get(f'/cards/{card_id}/actions', params={'filter': 'commentCard'})

    def get_lists_with_cards(self, lists):
        """Return [(list, cards)] for the given list records."""
        lists = list(lists)
        cards = fan_out(lambda l: self.get_list_cards(l['id']), lists, self.config.max_workers)
        return list(zip(lists, cards))

    def get_cards_with_actions(self, cards):
        cards = list(cards)
        actions = fan_out(lambda c: self.get_card_comments(c['id']), cards, self.config.max_workers)
        return [{**card, 'actions': acts} for card, acts in zip(cards, actions)]
