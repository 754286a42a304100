"""Shared fixtures: sample device payloads and a fake ServerTech client"""
import json
import time

import pytest

from collectors import CollectorRegistry, register_defaults
from collectors.base import ErrorCounter


BRANCHES = [
    {
        "id": "AA1", "name": "Master_Branch_A1",
        "current": 1.25, "current_capacity": 20, "current_status": "Normal",
        "current_utilized": 6.2, "ocp_id": "OCP1", "phase_id": "PH1",
        "state": "On", "status": "Normal",
    },
    {
        "id": "AA2", "name": "Master_Branch_A2",
        "current": 0, "current_capacity": 20, "current_status": "High",
        "current_utilized": 0, "ocp_id": "OCP2", "phase_id": "PH2",
        "state": "Off", "status": "normal",
    },
]

CORDS = [
    {
        "id": "AA", "name": "Master_Cord_A",
        "active_power": 1432, "active_power_status": "Normal",
        "apparent_power": 1510, "apparent_power_status": "Normal",
        "energy": 98765.4, "frequency": 50.1,
        "power_capacity": 5760, "power_factor": 0.95, "power_factor_status": "Low",
        "power_utilized": 24, "plug_type": "IEC 60309 32A",
        "state": "On", "status": "Normal",
        "three_phase_imbalance": 3.2, "three_phase_imbalance_status": "Normal",
    },
]

LINES = [
    {
        "id": "AA1", "name": "Master_Line_L1",
        "current": 6.48, "current_capacity": 32, "current_status": "Normal",
        "current_utilized": 20.2, "state": "On", "status": "Normal",
    },
]

OCPS = [
    {"id": "AA1", "name": "Master_OCP_A1", "current_capacity": 20, "status": "Normal", "type": "Breaker"},
    {"id": "AA2", "name": "Master_OCP_A2", "current_capacity": 20, "status": "Tripped", "type": "Fuse"},
]

OUTLETS = [
    {
        "id": "AA1", "name": "Master_Outlet_1",
        "active_power": 120, "active_power_status": "Normal",
        "apparent_power": 130, "branch_id": "AA1", "control_state": "idle on",
        "current": 0.55, "current_capacity": 10, "current_status": "Normal",
        "current_utilized": 5.5, "energy": 1234.5, "ocp_id": "AA1", "phase_id": "AA1",
        "power_capacity": 2300, "power_factor_status": "Normal",
        "socket_adapter": "", "socket_type": "C13",
        "state": "On", "status": "Normal", "voltage": 230.1,
        "crest_factor": 1.4, "power_factor": 0.92, "reactance": "Capacitive",
    },
    {
        "id": "AA2", "name": "Master_Outlet_2",
        "active_power": 0, "active_power_status": "Normal",
        "apparent_power": 0, "branch_id": "AA1",
        "current": 0, "current_capacity": 10, "current_status": "Normal",
        "energy": 0, "ocp_id": "AA1", "phase_id": "AA1",
        "power_capacity": 2300, "power_factor_status": "Normal",
        "socket_adapter": "", "socket_type": "C13",
        "state": "Off", "status": "Normal", "voltage": 230.1,
    },
]

PHASES = [
    {
        "id": "AA1", "name": "Master_Phase_L1",
        "active_power": 1432, "apparent_power": 1510,
        "crest_factor": 1.5, "current": 6.48, "energy": 98765.4,
        "nominal_voltage": 230, "power_factor": 0.95, "power_factor_status": "Normal",
        "reactance": "Inductive", "state": "On", "status": "Normal",
        "voltage": 231.2, "voltage_status": "Normal", "voltage_deviation": 0.5,
    },
]

SYSTEM = {
    "active_users": 2,
    "firmware": "Sentry4 v8.0p",
    "nic_serial_number": "NIC123456",
    "status_branches": "Normal",
    "status_cords": "Normal",
    "status_lines": "Normal",
    "status_ocps": "Tripped",
    "status_outlets": "Normal",
    "status_phases": "Normal",
    "status_units": "Normal",
    "uptime": "2 days 3 hours 4 minutes 5 seconds",
}

UNITS = [
    {
        "id": "A", "name": "Master", "display_orientation": "Auto (Normal)",
        "unit_sequence": "Reversed", "status": "Normal", "type": "master",
    },
]

PAYLOADS = {
    "branches": BRANCHES,
    "cords": CORDS,
    "lines": LINES,
    "ocps": OCPS,
    "outlets": OUTLETS,
    "phases": PHASES,
    "system": SYSTEM,
    "units": UNITS,
}


class FakeClient:
    """
    Stand-in for ServerTechClient.

    payloads maps category path to a JSON-serialisable object or raw bytes,
    errors maps path to an exception to raise and delays maps path to a sleep
    in seconds before answering.
    """

    def __init__(self, payloads=None, errors=None, delays=None):
        self.payloads = dict(PAYLOADS if payloads is None else payloads)
        self.errors = errors or {}
        self.delays = delays or {}
        self.calls = []

    def fetch(self, target, user, password, path):
        self.calls.append((target, user, password, path))

        if path in self.delays:
            time.sleep(self.delays[path])
        if path in self.errors:
            raise self.errors[path]

        payload = self.payloads.get(path, [])
        if isinstance(payload, bytes):
            return payload
        return json.dumps(payload).encode()


def encode(payload) -> bytes:
    return json.dumps(payload).encode()


def samples(emissions):
    """Index emissions by (fully-qualified name, labels)."""
    return {(e.descriptor.fqname, e.labels): e.value for e in emissions}


def make_collector(collector_cls, config=None, client=None):
    return collector_cls(config or {}, client or FakeClient(), ErrorCounter())


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def registry():
    return register_defaults(CollectorRegistry())
