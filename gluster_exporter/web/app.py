"""
Web Application Module

Flask application serving the Prometheus metrics endpoint and a liveness
endpoint. Every request to the metrics path runs a full scrape.
"""

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from prometheus_client.core import CollectorRegistry


def create_app(registry: CollectorRegistry, metrics_path: str = '/metrics') -> Flask:
    """
    Create and configure the Flask application.

    Args:
        registry: Registry rendered on every metrics request
        metrics_path: URL path of the metrics endpoint

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    def metrics():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(registry), content_type=CONTENT_TYPE_LATEST)

    app.add_url_rule(metrics_path, 'metrics', metrics)

    @app.route('/healthz')
    def healthz():
        """Liveness check for the exporter process itself."""
        return Response('OK', status=200, mimetype='text/plain')

    return app
