#!/usr/bin/env python3
"""
ServerTech Exporter - Prometheus exporter for ServerTech PDUs.

Supports:
- Multi-target scraping: /metrics?target=<host>&user=<user>&pass=<pass>
- Pluggable per-category collectors, each independently enabled
- Concurrent category fetches with per-collector up/duration/error metrics
- Config reload via HTTP endpoint
- HTTPS or plain HTTP serving
"""
import json
import logging
import platform
import ssl
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from threading import Lock
from typing import Dict, Optional
from urllib.parse import parse_qs, urlparse

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Info, generate_latest
from prometheus_client import CollectorRegistry as ScrapeRegistry

from config_loader import ConfigError, ConfigLoader
from collectors import (
    BaseCollector, CollectorRegistry, CollectorResult, ErrorCounter,
    MetricSink, ServerTechClient, default_registry,
)
from collectors.metrics import counter, descriptor, gauge

__version__ = "0.1.0"

META_LABELS = ("collector",)

META_DESCRIPTORS = {
    "scrapes_total": descriptor("", "scrapes_total", "Total number of times servertech_exporter has been scraped."),
    "scrape_errors_total": descriptor("", "scrape_errors_total", "Total number of errors from a collector.", META_LABELS),
    "scrape_duration_seconds": descriptor("", "scrape_duration_seconds", "Time it took for a collector's scrape to complete.", META_LABELS),
    "collector_up": descriptor("", "collector_up", "Whether the collector's last scrape was successful (1 = successful, 0 = unsuccessful).", META_LABELS),
}

LANDING_PAGE = """<html>
<head><title>ServerTech Exporter</title></head>
<body>
<h1>ServerTech Exporter</h1>
<p><a href="{path}">Metrics</a></p>
</body>
</html>
"""


class ScrapeCounter(ErrorCounter):
    """Process-wide number of scrapes served."""


# Global state
current_config = None
current_client = None
config_loader_instance = None
scrape_counter = ScrapeCounter()

# Health check state
start_time = None
last_scrape_time = None

# Thread-safety locks
config_lock = Lock()

# Build information, exposed on the default registry next to the process metrics
build_info = Info(
    "servertech_exporter_build",
    "A metric with a constant '1' value labeled by the version and Python version servertech_exporter runs with.",
)
build_info.info({"version": __version__, "python_version": platform.python_version()})

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class ServerTechExporter:
    """
    Custom Prometheus collector that scrapes one PDU on demand.

    A new instance is created for every incoming request. collect() runs
    each enabled category collector concurrently and waits for all of them,
    so the response never contains a partially finished scrape.
    """

    def __init__(self, target: str, user: str, password: str,
                 registry: CollectorRegistry = None, client=None,
                 config: Optional[dict] = None, scrapes: ErrorCounter = None):
        self.target = target
        self.user = user
        self.password = password
        self.registry = registry or default_registry
        self.client = client or ServerTechClient()
        self.config = config or {}
        self.scrape_counter = scrapes or scrape_counter
        self.logger = logging.getLogger(self.__class__.__name__)

    def collect(self):
        """Called by prometheus_client when the request registry is rendered"""
        global last_scrape_time

        sink = MetricSink()
        sink.add([counter(META_DESCRIPTORS["scrapes_total"], self.scrape_counter.increment())])

        collectors = self.registry.build_enabled(self.config, self.client)
        if collectors:
            with ThreadPoolExecutor(max_workers=len(collectors), thread_name_prefix="collector") as pool:
                futures = {
                    name: pool.submit(self._run_collector, sink, name, collector)
                    for name, collector in collectors.items()
                }

            for name, future in futures.items():
                try:
                    future.result()
                except Exception:
                    self.logger.error(f"collector {name!r} worker failed", exc_info=True)
                    sink.add([gauge(META_DESCRIPTORS["collector_up"], 0.0, (name,))])

        last_scrape_time = datetime.now()

        for family in sink.families():
            yield family

    def _run_collector(self, sink: MetricSink, name: str, collector: BaseCollector) -> CollectorResult:
        start = time.monotonic()

        try:
            result = collector.get(sink, self.target, self.user, self.password)
        except Exception as e:
            self.logger.error(f"collector {name!r} raised unexpectedly", exc_info=True)
            result = CollectorResult(collector.error_counter.increment(), e)

        duration = time.monotonic() - start
        labels = (name,)

        if not result.up:
            self.logger.error(f"collector {name!r} scrape failed: {result.error}")

        sink.add([
            gauge(META_DESCRIPTORS["scrape_duration_seconds"], duration, labels),
            gauge(META_DESCRIPTORS["scrape_errors_total"], result.error_count, labels),
            gauge(META_DESCRIPTORS["collector_up"], 1.0 if result.up else 0.0, labels),
        ])

        return result


def render_metrics(target: str, user: str, password: str) -> bytes:
    """
    Render the process metrics plus one scrape of the given target.

    Args:
        target: Device host[:port]
        user: Basic auth username passed through to the device
        password: Basic auth password passed through to the device

    Returns:
        Prometheus text exposition
    """
    with config_lock:
        config = current_config
        client = current_client

    registry = ScrapeRegistry()
    registry.register(ServerTechExporter(
        target, user, password,
        registry=default_registry,
        client=client,
        config=config.get("servertech", {}) if config else {},
    ))

    return generate_latest(REGISTRY) + generate_latest(registry)


class ExporterHandler(BaseHTTPRequestHandler):
    """
    HTTP handler for the exporter.
    GET  <telemetry_path>?target=... - Scrape a PDU
    GET  /                            - Landing page
    GET  /health                      - Health check status
    POST /reload                      - Reload configuration
    """

    def do_GET(self):
        url = urlparse(self.path)

        if url.path == telemetry_path():
            self._handle_metrics(parse_qs(url.query))
        elif url.path == '/':
            self._send(200, 'text/html', LANDING_PAGE.format(path=telemetry_path()).encode())
        elif url.path == '/health':
            self._handle_health()
        else:
            self._send(404, 'text/plain', b'Not Found\n')

    def do_POST(self):
        if urlparse(self.path).path == '/reload':
            self._handle_reload()
        else:
            self._send(404, 'text/plain', b'Not Found\n')

    def _handle_metrics(self, query: Dict):
        target = query.get("target", [""])[0]
        user = query.get("user", [""])[0]
        password = query.get("pass", [""])[0]

        if not target:
            self._send(400, 'text/plain', b"'target' parameter must be specified\n")
            return

        try:
            output = render_metrics(target, user, password)
        except Exception as e:
            logger.error(f"Error rendering metrics for {target}: {e}", exc_info=True)
            self._send(500, 'text/plain', f"Internal server error: {e}\n".encode())
            return

        self._send(200, CONTENT_TYPE_LATEST, output)

    def _handle_health(self):
        """Handle GET /health endpoint for exporter status"""
        uptime_seconds = 0
        if start_time:
            uptime_seconds = int((datetime.now() - start_time).total_seconds())

        response = {
            "status": "healthy" if last_scrape_time else "starting",
            "version": __version__,
            "uptime_seconds": uptime_seconds,
            "last_scrape": last_scrape_time.isoformat() if last_scrape_time else None,
            "scrapes_total": int(scrape_counter.value),
            "enabled_collectors": default_registry.enabled_names(),
        }
        self._send(200, 'application/json', json.dumps(response, indent=2).encode())

    def _handle_reload(self):
        logger.info("🔄 Config reload triggered via HTTP")

        try:
            reload_config()
        except ConfigError as e:
            logger.error(f"❌ Config reload failed: {e}")
            self._send(500, 'text/plain', f"Config reload failed: {e}\n".encode())
            return

        self._send(200, 'text/plain', b'Config reloaded\n')

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        """Suppress default HTTP request logs (query strings carry credentials)"""
        pass


def telemetry_path() -> str:
    with config_lock:
        if current_config:
            return current_config["web"]["telemetry_path"]
    return "/metrics"


def apply_new_config(new_config: dict):
    """
    Apply configuration: collector switches, HTTP client and log level.

    Args:
        new_config: Validated configuration dictionary
    """
    global current_config, current_client

    old_enabled = set(default_registry.enabled_names())
    default_registry.apply_config(new_config.get("collectors", {}))
    new_enabled = set(default_registry.enabled_names())

    if new_enabled - old_enabled:
        logger.info(f"Collectors enabled: {sorted(new_enabled - old_enabled)}")
    if old_enabled - new_enabled:
        logger.info(f"Collectors disabled: {sorted(old_enabled - new_enabled)}")

    servertech = new_config["servertech"]
    client = ServerTechClient(
        timeout=servertech["http_timeout"],
        verify_tls=servertech["verify_tls"],
    )

    logging.getLogger().setLevel(new_config.get("log_level", "INFO"))

    with config_lock:
        current_config = new_config
        current_client = client
    logger.info("✅ Configuration updated")


def reload_config():
    """
    Reload the configuration file and apply it.

    Raises:
        ConfigError: If the new configuration is invalid; the current
            configuration stays in place
    """
    global config_loader_instance

    if config_loader_instance is None:
        config_loader_instance = ConfigLoader()
    apply_new_config(config_loader_instance.load())


def create_server(config: dict) -> ThreadingHTTPServer:
    """
    Create the HTTP(S) server described by the "web" config section.

    Args:
        config: Validated configuration dictionary

    Returns:
        Bound server, not yet serving
    """
    web = config["web"]
    server = ThreadingHTTPServer((web["listen_address"], web["port"]), ExporterHandler)
    server.daemon_threads = True

    if not web["http_only"]:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        context.load_cert_chain(web["certificate"], web["key"])
        server.socket = context.wrap_socket(server.socket, server_side=True)

    return server


def main():
    """Main exporter entry point"""
    global config_loader_instance, start_time

    logger.info(f"🚀 ServerTech Exporter {__version__} starting...")
    start_time = datetime.now()

    # Load initial configuration
    config_loader_instance = ConfigLoader()
    config = config_loader_instance.load()
    apply_new_config(config)
    logger.info(f"Enabled collectors: {default_registry.enabled_names()}")

    server = create_server(config)
    web = config["web"]
    scheme = "http" if web["http_only"] else "https"
    logger.info(
        f"📊 Metrics endpoint started on {scheme}://{web['listen_address']}:{web['port']}{web['telemetry_path']}"
    )
    logger.info(f"   - GET  :{web['port']}/health - Health check status")
    logger.info(f"   - POST :{web['port']}/reload - Trigger config reload")

    try:
        server.serve_forever()
    finally:
        server.server_close()


def run():
    """Console entry point"""
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Exporter stopped by user")
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
