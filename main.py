"""
Gluster Exporter Entry Point

Parses command-line flags, resolves settings, wires the gluster client, the
metrics collector and the Flask web server together, and serves scrapes.
"""

import os
import sys
import socket
import logging
import argparse
from typing import Any, Dict, List, Optional

from gluster_exporter import __version__
from gluster_exporter.cluster import GlusterClient, GlusterCommand, MountProbe
from gluster_exporter.config import LOG_LEVELS, Settings, load_settings, parse_listen_address
from gluster_exporter.errors import ConfigError
from gluster_exporter.metrics import GlusterCollector, create_registry
from gluster_exporter.web import create_app

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def setup_logging(level: int) -> logging.Logger:
    """Setup logging configuration."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)
    return logging.getLogger('gluster_exporter')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='gluster-exporter',
        description='Gluster Exporter is an exporter for gluster to prometheus',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Every setting can also be given as an environment variable named after its
upper-cased key (LOG_LEVEL, WEB_LISTEN_ADDRESS, WEB_METRICS_PATH,
GLUSTER_VOLUMES, GLUSTER_BINARY, PROFILE, QUOTA, COMMAND_TIMEOUT) or in the
YAML settings file. Flags take precedence over the environment, the
environment over the settings file.
        """
    )
    parser.add_argument('--version', action='version',
                        version=f'Gluster Exporter version: {__version__}')
    parser.add_argument('--config', '-c', default='config/settings.yaml',
                        help='Path to settings file (optional)')
    parser.add_argument('--log.level', dest='log_level',
                        help='Which log level to use: ' + ', '.join(LOG_LEVELS) + ' (default: info)')
    parser.add_argument('--web.listen-address', dest='web_listen_address',
                        help='Address to listen on for web interface (default: :9106)')
    parser.add_argument('--web.metrics-path', dest='web_metrics_path',
                        help='Path under which to expose metrics (default: /metrics)')
    parser.add_argument('--gluster.volumes', dest='gluster_volumes',
                        help="Comma separated volume names: vol1,vol2,vol3. "
                             "Default is '_all' to scrape all metrics")
    parser.add_argument('--gluster.binary', dest='gluster_binary',
                        help='Path to the gluster binary (default: /usr/sbin/gluster)')
    parser.add_argument('--profile', action='store_true', default=None,
                        help='Enable gluster profiling reports')
    parser.add_argument('--quota', action='store_true', default=None,
                        help='Enable gluster quota reports')
    parser.add_argument('--command-timeout', dest='command_timeout', type=float,
                        help='Seconds before a gluster or mount command is killed, 0 disables '
                             '(default: 60)')
    return parser


def resolve_settings(argv: Optional[List[str]] = None) -> Settings:
    args = build_parser().parse_args(argv)
    overrides: Dict[str, Any] = {
        key: value for key, value in vars(args).items() if key != 'config'
    }
    return load_settings(args.config, overrides=overrides)


def build_collector(settings: Settings, app_logger: logging.Logger) -> GlusterCollector:
    command = GlusterCommand(settings.gluster_binary, timeout=settings.timeout,
                             logger=app_logger.getChild('command'))
    client = GlusterClient(command, logger=app_logger.getChild('client'))
    mount_probe = MountProbe(timeout=settings.timeout, logger=app_logger.getChild('mounts'))
    return GlusterCollector(
        client=client,
        settings=settings,
        mount_probe=mount_probe,
        hostname=socket.gethostname(),
        logger=app_logger.getChild('collector')
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    try:
        settings = resolve_settings(argv)
    except ConfigError as e:
        setup_logging(logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        return 1

    app_logger = setup_logging(settings.log_level_value)
    app_logger.info(f"Starting Gluster Exporter {__version__}")
    app_logger.info(f"Volumes: {settings.volume_scope}, profile: {settings.profile}, "
                    f"quota: {settings.quota}")

    if not os.path.isfile(settings.gluster_binary):
        app_logger.error(f"gluster binary not found: {settings.gluster_binary}")
        return 1

    collector = build_collector(settings, app_logger)
    registry = create_registry(collector)
    app = create_app(registry, metrics_path=settings.web_metrics_path)

    host, port = parse_listen_address(settings.web_listen_address)
    app_logger.info(f"Starting exporter on http://{host}:{port}{settings.web_metrics_path}")

    try:
        app.run(host=host, port=port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        app_logger.info("Shutting down...")
    return 0


if __name__ == '__main__':
    sys.exit(main())
