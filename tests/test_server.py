"""
Server Tests — frame/init messages, param editing and the WebSocket surface.

The TestClient is used without its context manager so the lifespan frame
loop does not run; every message seen here is a direct response.
"""

import sys
import os
import json
import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import physics as _phys
import server
from controller import BasketballController


@pytest.fixture
def ctrl(monkeypatch):
    """Fresh controller behind the server module for each test."""
    fresh = BasketballController()
    monkeypatch.setattr(server, "ctrl", fresh)
    return fresh


@pytest.fixture
def params(monkeypatch):
    """Restore every editable physics constant after the test."""
    for attr, *_ in server.PHYSICS_PARAMS:
        monkeypatch.setattr(_phys, attr, getattr(_phys, attr))


class TestMessages:

    def test_init_message(self, ctrl):
        msg = json.loads(server._build_init_message())
        assert msg["type"] == "init"
        assert msg["court_length"] == 30.0
        assert msg["court_width"] == 15.0
        assert msg["ball_radius"] == 0.24
        assert msg["spawn"] == pytest.approx([0.0, 0.34, 0.0])
        assert msg["hoops"] == {"left": pytest.approx(-13.8), "right": pytest.approx(13.8)}
        assert set(msg["lines"]) == {"center_line", "center_circle",
                                     "three_point_left", "three_point_right"}

    def test_frame_reports_ball_and_power(self, ctrl):
        ctrl.key_down(" ")
        for _ in range(10):
            ctrl.tick(1 / 60)

        frame = json.loads(server._build_frame_message())

        assert frame["type"] == "frame"
        assert frame["ball"]["pos"] == pytest.approx([0.0, 0.34, 0.0])
        assert frame["mode"] == "charging"
        assert frame["power"] == {"percent": 20, "hot": False}
        assert frame["orbit"] is True
        assert {"type": "update_power_meter"} in frame["events"]

    def test_frame_drains_events(self, ctrl):
        ctrl.key_down("o")
        first = json.loads(server._build_frame_message())
        second = json.loads(server._build_frame_message())
        assert {"type": "orbit", "enabled": False} in first["events"]
        assert second["events"] == []
        assert second["orbit"] is False

    def test_frame_sounds_from_bounces(self, ctrl):
        ctrl.ball.mode = _phys.BallMode.MOVING
        ctrl.ball.velocity[:] = [0.0, -5.0, 0.0]
        ctrl.tick(1 / 60)

        frame = json.loads(server._build_frame_message())

        assert [s["type"] for s in frame["sounds"]] == ["floor"]
        assert frame["sounds"][0]["speed"] > 5.0


class TestParams:

    def test_adjust_within_range(self, params):
        idx = [p[0] for p in server.PHYSICS_PARAMS].index("BOUNCE_DAMPING")
        new_val = server._adjust_param(idx, +1)
        assert new_val == pytest.approx(0.71)
        assert _phys.BOUNCE_DAMPING == pytest.approx(0.71)

    def test_adjust_is_clamped(self, params):
        idx = [p[0] for p in server.PHYSICS_PARAMS].index("AIR_DRAG")
        for _ in range(100):
            server._adjust_param(idx, +1)
        assert _phys.AIR_DRAG == 1.0

    def test_adjust_bad_index(self, params):
        assert server._adjust_param(99, +1) is None

    def test_reset_params(self, params):
        _phys.GRAVITY = 3.0
        server._reset_params()
        assert _phys.GRAVITY == server.PARAM_DEFAULTS["GRAVITY"]

    def test_params_data(self):
        data = server._get_params_data()
        assert [d["attr"] for d in data] == [p[0] for p in server.PHYSICS_PARAMS]
        assert all(d["min"] <= d["value"] <= d["max"] for d in data)


class TestWebSocket:

    def test_init_then_state(self, ctrl):
        client = TestClient(server.app)
        with client.websocket_connect("/ws") as ws:
            init = ws.receive_json()
            assert init["type"] == "init"

            ws.send_text(json.dumps({"cmd": "key_down", "key": "ArrowRight"}))
            ws.send_text("not json")
            ws.send_text(json.dumps(["not", "a", "dict"]))
            ws.send_text(json.dumps({"cmd": "get_state"}))
            state = ws.receive_json()

        assert state["type"] == "state"
        assert state["data"]["keys_held"] == ["right"]
        assert state["data"]["mode"] == "idle"

    def test_reset_command(self, ctrl):
        ctrl.ball.position[0] = 4.0
        client = TestClient(server.app)
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text(json.dumps({"cmd": "reset"}))
            ws.send_text(json.dumps({"cmd": "get_state"}))
            state = ws.receive_json()
        assert state["data"]["position"] == pytest.approx([0.0, 0.34, 0.0])

    def test_get_params(self, ctrl):
        client = TestClient(server.app)
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text(json.dumps({"cmd": "get_params"}))
            msg = ws.receive_json()
        assert msg["type"] == "params"
        assert len(msg["data"]) == len(server.PHYSICS_PARAMS)

    def test_index_served(self):
        client = TestClient(server.app)
        resp = client.get("/")
        assert resp.status_code == 200
        assert "WebSocket" in resp.text
