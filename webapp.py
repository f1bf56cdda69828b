import logging
import sys

from flask import Flask, request, jsonify, make_response

from board_stats.board import build_statistics, fetch_completion_events, fetch_done_tasks
from board_stats.config import ConfigError, load_config, load_env_file, parse_positive_int
from board_stats.dates import MAX_LOOKBACK_DAYS, MAX_LOOKBACK_WEEKS, utc_now
from board_stats.stats import buckets_to_json, daily_stats, weekly_stats
from board_stats.trello import TrelloClient

logger = logging.getLogger(__name__)


class InvalidQuery(ValueError):
    pass


def positive_int_arg(name, default, maximum):
    raw = (request.args.get(name) or '').strip()
    if not raw:
        return default
    try:
        return parse_positive_int(name, raw, maximum)
    except ValueError as e:
        raise InvalidQuery(str(e)) from None


def create_app(config, client=None):
    app = Flask(__name__)
    trello = client or TrelloClient(config)

    # Simple CORS for the dashboard front-end
    @app.after_request
    def add_cors(resp):
        resp.headers['Access-Control-Allow-Origin'] = '*'
        resp.headers['Access-Control-Allow-Headers'] = '*'
        resp.headers['Access-Control-Allow-Methods'] = 'GET, OPTIONS'
        return resp

    @app.errorhandler(InvalidQuery)
    def bad_request(e):
        return jsonify({'error': str(e)}), 400

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/config', methods=['GET'])
    def api_config():
        return jsonify(config.public_view())

    @app.route('/api/done-tasks', methods=['GET', 'OPTIONS'])
    def done_tasks():
        if request.method == 'OPTIONS':
            return make_response('', 204)
        try:
            return jsonify(fetch_done_tasks(trello))
        except Exception:
            logger.exception('Error fetching Trello data')
            return jsonify({'error': 'Failed to fetch Trello data'}), 500

    @app.route('/api/daily-stats', methods=['GET', 'OPTIONS'])
    def daily():
        if request.method == 'OPTIONS':
            return make_response('', 204)
        days = positive_int_arg('days', config.daily_days, MAX_LOOKBACK_DAYS)
        try:
            events = fetch_completion_events(trello)
            return jsonify(buckets_to_json(daily_stats(events, utc_now(), days)))
        except Exception:
            logger.exception('Error fetching daily stats')
            return jsonify({'error': 'Failed to fetch daily statistics'}), 500

    @app.route('/api/weekly-stats', methods=['GET', 'OPTIONS'])
    def weekly():
        if request.method == 'OPTIONS':
            return make_response('', 204)
        weeks = positive_int_arg('weeks', config.weekly_weeks, MAX_LOOKBACK_WEEKS)
        try:
            events = fetch_completion_events(trello)
            return jsonify(buckets_to_json(weekly_stats(events, utc_now(), weeks)))
        except Exception:
            logger.exception('Error fetching weekly stats')
            return jsonify({'error': 'Failed to fetch weekly statistics'}), 500

    @app.route('/api/statistics', methods=['GET', 'OPTIONS'])
    def statistics():
        if request.method == 'OPTIONS':
            return make_response('', 204)
        days = positive_int_arg('days', config.daily_days, MAX_LOOKBACK_DAYS)
        weeks = positive_int_arg('weeks', config.weekly_weeks, MAX_LOOKBACK_WEEKS)
        try:
            events = fetch_completion_events(trello)
            return jsonify(build_statistics(events, utc_now(), days, weeks))
        except Exception:
            logger.exception('Error fetching statistics')
            return jsonify({'error': 'Failed to fetch statistics'}), 500

    return app


def main():
    # Load env from local .env if present
    load_env_file()
    try:
        config = load_config()
    except ConfigError as e:
        logging.basicConfig(level=logging.INFO)
        logger.error('Error: %s', e)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    app = create_app(config)
    logger.info('Server is running on http://%s:%s', config.host, config.port)
    app.run(host=config.host, port=config.port)


if __name__ == '__main__':
    main()
