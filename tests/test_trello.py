import threading
import time

import pytest
import requests

from board_stats.trello import TrelloClient, TrelloError, fan_out
from tests.conftest import API_BASE, FakeResponse


class TestGet:

    def test_adds_credentials_and_timeout(self, trello, session):
        assert trello.get_board_info() == {'id': 'b1', 'name': 'Team Board'}
        url, params, timeout = session.calls[0]
        assert url == f'{API_BASE}/boards/b1'
        assert params == {'key': 'k', 'token': 't'}
        assert timeout == 30

    def test_comment_filter(self, trello, session):
        trello.get_card_comments('c1')
        _, params, _ = session.calls[0]
        assert params['filter'] == 'commentCard'

    def test_http_error(self, trello, routes):
        routes['/boards/b1/lists'] = FakeResponse({'message': 'unauthorized'}, 401)
        with pytest.raises(TrelloError) as exc_info:
            trello.get_board_lists()
        assert exc_info.value.status == 401
        assert exc_info.value.url == f'{API_BASE}/boards/b1/lists'
        assert 'token' not in exc_info.value.url

    def test_transport_error(self, trello, routes):
        cause = requests.ConnectionError('connection refused')
        routes['/lists/l1/cards'] = cause
        with pytest.raises(TrelloError) as exc_info:
            trello.get_list_cards('l1')
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.status is None

    def test_failure_is_logged_with_url(self, trello, caplog):
        with pytest.raises(TrelloError):
            trello.get_card('missing')
        assert f'{API_BASE}/cards/missing' in caplog.text


class TestFanOut:

    def test_keeps_order(self):
        def slow_square(n):
            time.sleep(0.01 * (5 - n))
            return n * n
        assert fan_out(slow_square, range(5), 5) == [0, 1, 4, 9, 16]

    def test_empty(self):
        assert fan_out(lambda x: x, [], 4) == []

    def test_respects_worker_cap(self):
        lock = threading.Lock()
        running = 0
        peak = 0

        def work(_):
            nonlocal running, peak
            with lock:
                running += 1
                peak = max(peak, running)
            time.sleep(0.01)
            with lock:
                running -= 1

        fan_out(work, range(12), 3)
        assert peak <= 3

    def test_first_error_propagates(self):
        def work(n):
            if n == 2:
                raise ValueError('boom')
            return n

        with pytest.raises(ValueError, match='boom'):
            fan_out(work, range(6), 2)

    def test_failure_stops_queued_items(self):
        started = []

        def work(n):
            started.append(n)
            if n == 0:
                raise ValueError('boom')
            return n

        with pytest.raises(ValueError, match='boom'):
            fan_out(work, range(6), 1)
        assert started == [0]


class TestBatchHelpers:

    def test_lists_with_cards(self, trello):
        lists = [{'id': 'l2', 'name': 'Dima Done'}, {'id': 'l3', 'name': 'Eve Today'}]
        assert trello.get_lists_with_cards(lists) == [
            (lists[0], [{'id': 'c4'}, {'id': 'c5'}]),
            (lists[1], [{'id': 'c6'}]),
        ]

    def test_cards_with_actions(self, trello):
        cards = trello.get_cards_with_actions([{'id': 'c5'}, {'id': 'c1'}])
        assert [c['id'] for c in cards] == ['c5', 'c1']
        assert cards[0]['actions'] == []
        assert cards[1]['actions'][0]['data']['text'] == 'Done!'

    def test_one_failure_fails_the_batch(self, trello, routes):
        routes['/cards/c2/actions'] = FakeResponse(None, 500)
        with pytest.raises(TrelloError):
            trello.get_cards_with_actions([{'id': 'c1'}, {'id': 'c2'}, {'id': 'c3'}])


class TestSessions:

    def test_one_session_per_thread(self, config):
        client = TrelloClient(config)
        sessions = fan_out(lambda _: client.session, range(2), 2)
        assert client.session is client.session
        assert all(isinstance(s, requests.Session) for s in sessions)
        assert len({id(s) for s in sessions + [client.session]}) >= 2

    def test_injected_session_is_shared(self, trello, session):
        assert fan_out(lambda _: trello.session, range(3), 3) == [session] * 3
