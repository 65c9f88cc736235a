"""
Basketball Court Web Server — Layer 3 (FastAPI + WebSocket)

Serves the Three.js frontend and runs the simulation loop,
streaming the ball transform and power meter to browser clients over WebSocket.
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from controller import BasketballController
import court
from physics import BALL_RADIUS, SPAWN_POSITION
import physics as _phys

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = BasketballController()


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(game_loop())
    yield
    task.cancel()


app = FastAPI(lifespan=lifespan)

STATIC_DIR = Path(__file__).parent / "static"
HOST = "0.0.0.0"
PORT = 8000

# ── Client state ────────────────────────────────────────────────────────────

clients: list[WebSocket] = []

# ── Physics params (live-editable module constants) ─────────────────────────

PHYSICS_PARAMS = [
    ("GRAVITY",          "Gravity",         1.0,  20.0,  0.1),
    ("BOUNCE_DAMPING",   "Bounce Damping",  0.0,   1.0,  0.01),
    ("AIR_DRAG",         "Air Drag",        0.9,   1.0,  0.001),
    ("MIN_BOUNCE_SPEED", "Min Bounce",      0.0,   2.0,  0.05),
    ("REST_SPEED",       "Rest Speed",      0.0,   1.0,  0.01),
    ("MIN_LAUNCH_VY",    "Min Launch Vy",   0.0,  10.0,  0.1),
]

PARAM_DEFAULTS = {attr: getattr(_phys, attr) for attr, *_ in PHYSICS_PARAMS}

# ── Async game loop ─────────────────────────────────────────────────────────

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS


async def game_loop():
    """Main simulation loop running at ~60 fps."""
    last_time = time.perf_counter()

    while True:
        now = time.perf_counter()
        dt = now - last_time
        last_time = now

        # Frame hitches are left to the integrator's own dt ceiling
        ctrl.tick(dt)

        if clients:
            frame_msg = _build_frame_message()
            dead: list[WebSocket] = []
            for ws in clients:
                try:
                    await ws.send_text(frame_msg)
                except Exception:
                    dead.append(ws)
            for ws in dead:
                if ws in clients:
                    clients.remove(ws)
        else:
            ctrl.pending_events.clear()

        # Sleep to maintain target FPS
        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


def _round3(v) -> list:
    return [round(float(v[0]), 5), round(float(v[1]), 5), round(float(v[2]), 5)]


def _build_frame_message() -> str:
    """Serialize current state into a JSON frame message."""
    # Drain pending events
    events = list(ctrl.pending_events)
    ctrl.pending_events.clear()

    # Physics events (sounds)
    sounds = []
    for ev in ctrl.physics_events:
        if ev.get("type") in ("floor", "wall"):
            sounds.append({
                "type": ev["type"],
                "speed": round(float(ev.get("speed", 0.0)), 3),
            })

    frame = {
        "type": "frame",
        "ball": {
            "pos": _round3(ctrl.ball.position),
            "vel": _round3(ctrl.ball.velocity),
        },
        "mode": ctrl.mode,
        "power": {
            "percent": ctrl.power_percent,
            "hot": ctrl.power_hot,
        },
        "orbit": ctrl.orbit_enabled,
        "events": events,
        "sounds": sounds,
        "status": ctrl.status_msg,
        "info": ctrl.info_msg,
    }
    return json.dumps(frame, separators=(',', ':'))


def _build_init_message() -> str:
    """Court, hoop and ball constants the client builds its scene from."""
    return json.dumps({
        "type": "init",
        "court_length": court.COURT_LENGTH,
        "court_width": court.COURT_WIDTH,
        "floor_thickness": court.FLOOR_THICKNESS,
        "floor_height": court.FLOOR_HEIGHT,
        "hoop_offset": court.HOOP_OFFSET,
        "hoops": court.hoop_positions(),
        "rims": {side: _round3(c) for side, c in court.rim_centers().items()},
        "rim_radius": court.RIM_RADIUS,
        "rim_height": court.RIM_HEIGHT,
        "backboard": [court.BACKBOARD_WIDTH, court.BACKBOARD_HEIGHT],
        "lines": court.court_lines(),
        "ball_radius": BALL_RADIUS,
        "spawn": list(SPAWN_POSITION),
        "max_shot_power": ctrl.MAX_SHOT_POWER,
    })


# ── Physics params helpers ──────────────────────────────────────────────────

def _get_params_data() -> list:
    """Return all physics params with current values."""
    result = []
    for attr, label, mn, mx, step in PHYSICS_PARAMS:
        result.append({
            "attr": attr, "label": label,
            "value": round(getattr(_phys, attr), 6),
            "min": mn, "max": mx, "step": step,
        })
    return result


def _adjust_param(idx: int, direction: int, fine: bool = False):
    """Step one physics constant within its range. Returns the new value or None."""
    if not 0 <= idx < len(PHYSICS_PARAMS):
        return None
    attr, label, mn, mx, step = PHYSICS_PARAMS[idx]
    s = step / 10.0 if fine else step
    cur = getattr(_phys, attr)
    new_val = max(mn, min(mx, cur + direction * s))
    setattr(_phys, attr, new_val)
    print(f"[PARAM] {attr} = {new_val:.6g}")
    return new_val


def _reset_params() -> None:
    for attr, dflt in PARAM_DEFAULTS.items():
        setattr(_phys, attr, dflt)
    print("[PARAM] defaults restored")


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    await ws.send_text(_build_init_message())
    clients.append(ws)

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            cmd = msg.get("cmd", "")
            if cmd == "key_down":
                ctrl.key_down(msg.get("key", ""))
            elif cmd == "key_up":
                ctrl.key_up(msg.get("key", ""))
            elif cmd == "reset":
                ctrl.reset()
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state",
                    "data": ctrl.get_state(),
                }))
            elif cmd == "get_params":
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
            elif cmd == "adjust_param":
                try:
                    idx = int(msg.get("index", 0))
                    direction = int(msg.get("direction", 0))
                except (TypeError, ValueError):
                    continue
                new_val = _adjust_param(idx, direction, bool(msg.get("fine", False)))
                if new_val is not None:
                    await ws.send_text(json.dumps({
                        "type": "param_update",
                        "index": idx,
                        "value": round(new_val, 6),
                    }))
            elif cmd == "reset_params":
                _reset_params()
                await ws.send_text(json.dumps({
                    "type": "params",
                    "data": _get_params_data(),
                }))
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        ctrl.release_keys()


# ── Static files + root route ───────────────────────────────────────────────

app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/")
async def root():
    return FileResponse(STATIC_DIR / "index.html")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host=HOST, port=PORT, reload=False)
