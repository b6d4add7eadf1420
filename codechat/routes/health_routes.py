import logging
import time

import redis
from flask import Blueprint, current_app, jsonify

logger = logging.getLogger(__name__)

bp = Blueprint('health', __name__)


@bp.route('/health/workspace')
def check_workspace():
    """Report scheduler backlog and the execution backend in use"""
    workspace = current_app.extensions['workspace']
    return jsonify({
        "status": "healthy",
        "scheduler": type(workspace.scheduler).__name__,
        "pending_callbacks": workspace.scheduler.pending,
        "execution_backend": type(workspace.editor.pipeline).__name__,
        "store_backend": current_app.config.get('STORE_BACKEND'),
    }), 200


@bp.route('/health/redis')
def check_redis():
    """Ping the Celery broker when runs are dispatched through it"""
    backend = current_app.config.get('EXECUTION_BACKEND')
    if backend != 'celery':
        return jsonify({
            "status": "not_used",
            "message": f"Execution backend is {backend}"
        }), 200

    broker_url = current_app.config['CELERY_BROKER_URL']
    client = redis.from_url(broker_url, socket_connect_timeout=2)
    started = time.monotonic()
    try:
        client.ping()
        latency_ms = round((time.monotonic() - started) * 1000, 2)
        queued_runs = client.llen('celery')
    except redis.RedisError as e:
        logger.warning(f"Broker ping failed: {e}")
        return jsonify({
            "status": "unreachable",
            "broker": _redacted(broker_url),
            "error": str(e)
        }), 503

    return jsonify({
        "status": "connected",
        "broker": _redacted(broker_url),
        "latency_ms": latency_ms,
        "queued_runs": queued_runs
    }), 200


def _redacted(url):
    # drop credentials, keep host and db
    return url.rsplit('@', 1)[-1]


@bp.route('/health/celery')
def check_celery():
    """Check Celery worker status"""
    if current_app.config.get('EXECUTION_BACKEND') != 'celery':
        return jsonify({
            "status": "not_used",
            "message": f"Execution backend is {current_app.config.get('EXECUTION_BACKEND')}"
        }), 200

    try:
        from codechat.celery_app import celery

        inspect = celery.control.inspect()
        active_workers = inspect.active()
        stats = inspect.stats()

        if active_workers:
            return jsonify({
                "status": "running",
                "workers": list(active_workers.keys()),
                "stats": stats
            }), 200
        else:
            return jsonify({
                "status": "no_workers",
                "message": "No Celery workers are running"
            }), 503

    except Exception as e:
        return jsonify({
            "status": "error",
            "error": str(e),
            "message": "Cannot connect to Celery"
        }), 500
