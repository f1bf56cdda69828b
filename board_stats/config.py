import logging
import os
from dataclasses import dataclass

from board_stats.dates import MAX_LOOKBACK_DAYS, MAX_LOOKBACK_WEEKS

logger = logging.getLogger(__name__)

REQUIRED_VARS = ('TRELLO_API_KEY', 'TRELLO_API_TOKEN', 'TRELLO_BOARD_ID')


class ConfigError(Exception):
    pass


# --- simple .env loader (no external deps) ---
def load_env_file(path='.env'):
    if not os.path.exists(path):
        return
    try:
        with open(path, 'r', encoding='utf-8') as f:
            for line in f:
                s = line.strip()
                if not s or s.startswith('#'):
                    continue
                if '=' not in s:
                    continue
                k, v = s.split('=', 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and not os.environ.get(k):
                    os.environ[k] = v
    except OSError as e:
        # a broken .env should not block the real environment
        logger.warning('Could not read %s: %s', path, e)


@dataclass(frozen=True)
class Config:
    trello_key: str
    trello_token: str
    board_id: str
    api_base: str = 'https://api.trello.com/1'
    request_timeout: int = 30
    max_workers: int = 8
    daily_days: int = 30
    weekly_weeks: int = 12
    host: str = '0.0.0.0'
    port: int = 3000
    log_level: str = 'INFO'

    def public_view(self) -> dict:
        return {
            'boardId': self.board_id,
            'hasApiKey': bool(self.trello_key),
            'hasToken': bool(self.trello_token),
        }


def parse_positive_int(name: str, raw: str, maximum=None) -> int:
    """Parse a positive integer setting, raising ValueError with a readable message."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f'{name} must be an integer, got {raw!r}') from None
    if value <= 0:
        raise ValueError(f'{name} must be positive, got {value}')
    if maximum is not None and value > maximum:
        raise ValueError(f'{name} must be at most {maximum}, got {value}')
    return value


def _positive_int(environ, name: str, default: int, maximum=None) -> int:
    raw = (environ.get(name) or '').strip()
    if not raw:
        return default
    try:
        return parse_positive_int(name, raw, maximum)
    except ValueError as e:
        raise ConfigError(str(e)) from None


def load_config(environ=None) -> Config:
    """Build a Config from environment variables.

    Raises ConfigError when Trello credentials are missing or a numeric
    setting is malformed.
    """
    env = os.environ if environ is None else environ
    missing = [name for name in REQUIRED_VARS if not (env.get(name) or '').strip()]
    if missing:
        raise ConfigError('Missing required settings: ' + ', '.join(missing))

    return Config(
        trello_key=env['TRELLO_API_KEY'].strip(),
        trello_token=env['TRELLO_API_TOKEN'].strip(),
        board_id=env['TRELLO_BOARD_ID'].strip(),
        api_base=(env.get('TRELLO_API_BASE') or 'https://api.trello.com/1').strip().rstrip('/'),
        request_timeout=_positive_int(env, 'TRELLO_TIMEOUT', 30),
        max_workers=_positive_int(env, 'TRELLO_MAX_WORKERS', 8),
        daily_days=_positive_int(env, 'DAILY_LOOKBACK_DAYS', 30, MAX_LOOKBACK_DAYS),
        weekly_weeks=_positive_int(env, 'WEEKLY_LOOKBACK_WEEKS', 12, MAX_LOOKBACK_WEEKS),
        host=(env.get('HOST') or '0.0.0.0').strip(),
        port=_positive_int(env, 'PORT', 3000),
        log_level=(env.get('LOG_LEVEL') or 'INFO').strip().upper(),
    )
