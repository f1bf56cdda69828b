from datetime import datetime, timezone

import pytest

import webapp
from board_stats.config import Config
from board_stats.trello import TrelloClient

API_BASE = 'https://trello.test/1'

# Friday
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload


class FakeSession:
    """Answers GETs from a {path: payload} table; unknown paths are 404s."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        path = url[len(API_BASE):]
        if path not in self.routes:
            return FakeResponse({'message': 'not found'}, 404)
        answer = self.routes[path]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, FakeResponse):
            return answer
        return FakeResponse(answer)


def done(date, text='Done!'):
    return {'type': 'commentCard', 'data': {'text': text}, 'date': date}


def board_routes():
    return {
        '/boards/b1': {'id': 'b1', 'name': 'Team Board'},
        '/boards/b1/lists': [
            {'id': 'l1', 'name': 'Eve Done'},
            {'id': 'l2', 'name': 'Dima Done'},
            {'id': 'l3', 'name': 'Eve Today'},
            {'id': 'l4', 'name': 'Backlog'},
        ],
        '/lists/l1/cards': [{'id': 'c1'}, {'id': 'c2'}, {'id': 'c3'}],
        '/lists/l2/cards': [{'id': 'c4'}, {'id': 'c5'}],
        '/lists/l3/cards': [{'id': 'c6'}],
        '/lists/l4/cards': [{'id': 'c7'}],
        '/cards/c1/actions': [done('2024-03-14T09:00:00.000Z')],
        '/cards/c2/actions': [
            done('2024-03-14T10:00:00.000Z', text='looks good'),
            done('2024-03-11T08:00:00.000Z', text='Done! shipped'),
        ],
        '/cards/c3/actions': [done('2024-01-10T08:00:00.000Z')],
        '/cards/c4/actions': [done('2024-03-14T23:30:00.000Z')],
        '/cards/c5/actions': [],
    }


@pytest.fixture
def config():
    return Config(
        trello_key='k',
        trello_token='t',
        board_id='b1',
        api_base=API_BASE,
        max_workers=4,
    )


@pytest.fixture
def routes():
    return board_routes()


@pytest.fixture
def session(routes):
    return FakeSession(routes)


@pytest.fixture
def trello(config, session):
    return TrelloClient(config, session=session)


@pytest.fixture
def app(config, trello, monkeypatch):
    monkeypatch.setattr(webapp, 'utc_now', lambda: NOW)
    app = webapp.create_app(config, client=trello)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
