"""Tests for the scrape orchestrator and HTTP surface"""
import logging
import platform
import threading
import time

import pytest
import requests
from prometheus_client import REGISTRY

import exporter
from collectors import FetchError
from collectors.base import ErrorCounter
from exporter import ExporterHandler, ScrapeCounter, ServerTechExporter
from tests.conftest import FakeClient


def sample_value(families, name, labels=None):
    for family in families:
        for sample in family.samples:
            if sample.name == name and sample.labels == (labels or {}):
                return sample.value
    return None


def family_names(families):
    return {family.name for family in families}


def scrape(registry, client, scrapes=None, config=None):
    collector = ServerTechExporter(
        "pdu.example.net", "admn", "secret",
        registry=registry,
        client=client,
        config=config,
        scrapes=scrapes or ScrapeCounter(),
    )
    return list(collector.collect())


class TestServerTechExporter:
    """Test fan-out, meta-metrics and failure isolation"""

    def test_all_collectors_up(self, registry, fake_client):
        families = scrape(registry, fake_client)

        for name in registry.names():
            assert sample_value(families, "servertech_collector_up", {"collector": name}) == 1
            assert sample_value(families, "servertech_scrape_errors_total", {"collector": name}) == 0
            assert sample_value(families, "servertech_scrape_duration_seconds", {"collector": name}) >= 0

        assert sample_value(families, "servertech_scrapes_total") == 1
        assert "servertech_outlets_amps" in family_names(families)

    def test_credentials_forwarded_to_client(self, registry, fake_client):
        scrape(registry, fake_client)

        assert {call[:3] for call in fake_client.calls} == {("pdu.example.net", "admn", "secret")}
        assert sorted(call[3] for call in fake_client.calls) == sorted(registry.names())

    def test_scrape_counter_increments(self, registry, fake_client):
        scrapes = ScrapeCounter()

        scrape(registry, fake_client, scrapes)
        families = scrape(registry, fake_client, scrapes)

        assert sample_value(families, "servertech_scrapes_total") == 2

    def test_transport_error_is_isolated(self, registry):
        client = FakeClient(errors={"outlets": FetchError("connection refused")})

        families = scrape(registry, client)

        assert sample_value(families, "servertech_collector_up", {"collector": "outlets"}) == 0
        assert sample_value(families, "servertech_scrape_errors_total", {"collector": "outlets"}) == 1
        assert not any(name.startswith("servertech_outlets_") for name in family_names(families))

        assert sample_value(families, "servertech_collector_up", {"collector": "phases"}) == 1
        assert "servertech_phases_amps" in family_names(families)

    def test_error_counter_is_cumulative(self, registry):
        client = FakeClient(errors={"units": FetchError("timeout")})

        scrape(registry, client)
        families = scrape(registry, client)

        assert sample_value(families, "servertech_scrape_errors_total", {"collector": "units"}) == 2
        assert registry.error_counter("units").value == 2
        assert registry.error_counter("cords").value == 0

    def test_error_count_kept_after_recovery(self, registry):
        scrape(registry, FakeClient(errors={"lines": FetchError("timeout")}))

        families = scrape(registry, FakeClient())

        assert sample_value(families, "servertech_collector_up", {"collector": "lines"}) == 1
        assert sample_value(families, "servertech_scrape_errors_total", {"collector": "lines"}) == 1

    def test_decode_error_is_isolated(self, registry):
        client = FakeClient()
        client.payloads["cords"] = b"<html>login</html>"
        client.payloads["system"] = dict(client.payloads["system"], uptime="forever")

        families = scrape(registry, client)

        for name in ("cords", "system"):
            assert sample_value(families, "servertech_collector_up", {"collector": name}) == 0
            assert sample_value(families, "servertech_scrape_errors_total", {"collector": name}) == 1
        assert not any(name.startswith(("servertech_cords_", "servertech_system_"))
                       for name in family_names(families))
        assert sample_value(families, "servertech_collector_up", {"collector": "branches"}) == 1

    def test_unexpected_exception_reports_down(self, registry):
        client = FakeClient(errors={"ocps": RuntimeError("bug")})

        families = scrape(registry, client)

        assert sample_value(families, "servertech_collector_up", {"collector": "ocps"}) == 0
        assert sample_value(families, "servertech_scrape_errors_total", {"collector": "ocps"}) == 1
        assert sample_value(families, "servertech_collector_up", {"collector": "lines"}) == 1

    def test_empty_array_is_up(self, registry):
        client = FakeClient()
        client.payloads["branches"] = []

        families = scrape(registry, client)

        assert sample_value(families, "servertech_collector_up", {"collector": "branches"}) == 1
        assert sample_value(families, "servertech_scrape_errors_total", {"collector": "branches"}) == 0
        assert not any(name.startswith("servertech_branches_") for name in family_names(families))

    def test_no_enabled_collectors(self, registry, fake_client):
        for name in registry.names():
            registry.set_enabled(name, False)

        families = scrape(registry, fake_client)

        assert family_names(families) == {"servertech_scrapes"}
        assert fake_client.calls == []

    def test_collectors_run_concurrently(self, registry):
        delays = {name: 0.5 for name in ("branches", "cords", "lines", "ocps")}
        for name in registry.names():
            registry.set_enabled(name, name in delays)

        start = time.monotonic()
        families = scrape(registry, FakeClient(delays=delays))
        elapsed = time.monotonic() - start

        assert elapsed < 1.5
        for name in delays:
            assert sample_value(families, "servertech_collector_up", {"collector": name}) == 1
            assert sample_value(families, "servertech_scrape_duration_seconds", {"collector": name}) >= 0.5

    def test_collector_config_is_passed_through(self, registry):
        client = FakeClient()
        families = scrape(registry, client, config={"unit_sequence_source": "unit_sequence"})

        value = sample_value(
            families, "servertech_units_unit_sequence", {"id": "A", "name": "Master", "type": "master"}
        )
        assert value == 2

    def test_default_scrape_counter_is_process_wide(self, registry, fake_client, monkeypatch):
        monkeypatch.setattr(exporter, "scrape_counter", ErrorCounter())
        collector = ServerTechExporter("pdu", "", "", registry=registry, client=fake_client)

        list(collector.collect())

        assert exporter.scrape_counter.value == 1

    def test_worker_failure_reports_down(self, registry, fake_client, caplog):
        collector = ServerTechExporter(
            "pdu.example.net", "admn", "secret",
            registry=registry, client=fake_client, scrapes=ScrapeCounter(),
        )
        run_collector = collector._run_collector

        def run_or_fail(sink, name, category):
            if name == "units":
                raise RuntimeError("sink unavailable")
            return run_collector(sink, name, category)

        collector._run_collector = run_or_fail

        with caplog.at_level(logging.ERROR):
            families = list(collector.collect())

        assert sample_value(families, "servertech_collector_up", {"collector": "units"}) == 0
        assert sample_value(families, "servertech_collector_up", {"collector": "outlets"}) == 1
        assert "'units' worker failed" in caplog.text
        assert "sink unavailable" in caplog.text


class TestBuildInfo:

    def test_registered_on_default_registry(self):
        labels = {"version": exporter.__version__, "python_version": platform.python_version()}

        assert REGISTRY.get_sample_value("servertech_exporter_build_info", labels) == 1


@pytest.fixture
def server(monkeypatch, tmp_path):
    """Serve ExporterHandler over plain HTTP on a free port."""
    config_path = tmp_path / "config.yaml"
    config_path.write_text("web:\n  http_only: true\n")

    monkeypatch.setenv("LOCAL_CONFIG_PATH", str(config_path))
    monkeypatch.setattr(exporter, "config_loader_instance", exporter.ConfigLoader())
    monkeypatch.setattr(exporter, "current_config", exporter.config_loader_instance.load())
    monkeypatch.setattr(exporter, "current_client", FakeClient())
    monkeypatch.setattr(exporter, "scrape_counter", ScrapeCounter())
    monkeypatch.setattr(exporter, "last_scrape_time", None)

    httpd = exporter.ThreadingHTTPServer(("127.0.0.1", 0), ExporterHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()

    yield f"http://127.0.0.1:{httpd.server_address[1]}", config_path

    httpd.shutdown()
    httpd.server_close()


class TestHTTPHandler:
    """Test the HTTP endpoints"""

    def test_missing_target(self, server):
        url, _ = server

        response = requests.get(f"{url}/metrics", timeout=5)

        assert response.status_code == 400
        assert "'target' parameter must be specified" in response.text

    def test_scrape(self, server):
        url, _ = server

        response = requests.get(
            f"{url}/metrics", params={"target": "pdu", "user": "admn", "pass": "secret"}, timeout=10
        )

        assert response.status_code == 200
        assert response.headers["Content-Type"].startswith("text/plain")
        assert 'servertech_collector_up{collector="system"} 1.0' in response.text
        assert "servertech_scrapes_total 1.0" in response.text
        assert "servertech_system_uptime_seconds_total" in response.text
        # Default process registry is included as well
        assert "python_info" in response.text
        assert "servertech_exporter_build_info{" in response.text
        assert f'version="{exporter.__version__}"' in response.text

    def test_landing_page(self, server):
        url, _ = server

        response = requests.get(f"{url}/", timeout=5)

        assert response.status_code == 200
        assert '<a href="/metrics">' in response.text

    def test_health(self, server):
        url, _ = server

        assert requests.get(f"{url}/health", timeout=5).json()["status"] == "starting"

        requests.get(f"{url}/metrics", params={"target": "pdu"}, timeout=10)
        health = requests.get(f"{url}/health", timeout=5).json()

        assert health["status"] == "healthy"
        assert health["version"] == exporter.__version__
        assert health["scrapes_total"] == 1
        assert health["last_scrape"] is not None

    def test_unknown_path(self, server):
        url, _ = server

        assert requests.get(f"{url}/nope", timeout=5).status_code == 404
        assert requests.post(f"{url}/nope", timeout=5).status_code == 404

    def test_reload(self, server):
        url, config_path = server
        config_path.write_text(
            "web:\n  http_only: true\n  telemetry_path: /scrape\n"
            "servertech:\n  http_timeout: 5s\n"
        )

        response = requests.post(f"{url}/reload", timeout=5)

        assert response.status_code == 200
        assert exporter.current_config["web"]["telemetry_path"] == "/scrape"
        assert exporter.current_client.timeout == 5.0
        assert requests.get(f"{url}/scrape", timeout=5).status_code == 400

    def test_failed_reload_keeps_config(self, server):
        url, config_path = server
        before = exporter.current_config
        config_path.write_text("servertech:\n  http_timeout: soon\n")

        response = requests.post(f"{url}/reload", timeout=5)

        assert response.status_code == 500
        assert exporter.current_config is before
