"""
3D Basketball Court Visualizer (3-Tier Architecture)
Layer 3: Ursina rendering / input handling.
Layer 2: controller.py (BasketballController)
Layer 1: physics.py (PhysicsEngine)

Arrows move the ball, hold Space to charge and release to shoot,
R resets, O toggles the orbit camera.
"""

import math
import os
import tempfile
import wave
from pathlib import Path
import numpy as np
from ursina import (
    Ursina, Entity, Text, camera, color, Vec3, EditorCamera,
    Audio, Mesh, Texture, time as ursina_time,
)
from PIL import Image, ImageDraw

import court
from physics import BALL_RADIUS
from controller import BasketballController, DEFAULT_INFO_MSG

# ── Layer 2: controller instance ──────────────────────────────────────────────
ctrl = BasketballController()

_asset_dir = tempfile.mkdtemp(prefix="basketball_")


def to_render(p) -> Vec3:
    """Sim coordinates → Ursina (left-handed, z into the screen)."""
    return Vec3(float(p[0]), float(p[1]), -float(p[2]))


# ──────────────────────────────────────────
# Ball texture (PIL)
# ──────────────────────────────────────────

def _make_ball_texture(base_rgb=(211, 84, 0), seam_rgb=(0, 0, 0), size=256):
    """Orange UV map with an equator and four meridian seams."""
    img = Image.new("RGB", (size * 2, size), base_rgb)
    draw = ImageDraw.Draw(img)
    w = max(2, size // 64)
    draw.line([(0, size // 2), (size * 2, size // 2)], fill=seam_rgb, width=w)
    for i in range(4):
        x = i * size // 2
        draw.line([(x, 0), (x, size)], fill=seam_rgb, width=w)
    return img


def _ball_texture():
    path = os.path.join(_asset_dir, "ball.png")
    _make_ball_texture().save(path)
    return Texture(path)


# ──────────────────────────────────────────
# Synthesized Sound Effects (numpy + wave)
# ──────────────────────────────────────────

def _synth_wav(filename, samples):
    """Write mono 16-bit 44100Hz WAV and return Path object."""
    path = os.path.join(_asset_dir, filename)
    data = np.clip(samples, -1.0, 1.0)
    data_int = (data * 32767).astype(np.int16)
    with wave.open(path, "w") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(44100)
        wf.writeframes(data_int.tobytes())
    return Path(path)


def _synth_bounce():
    sr = 44100; dur = 0.15
    t = np.linspace(0, dur, int(sr * dur), endpoint=False)
    env = np.exp(-t * 30)
    # falling pitch gives the hollow "dribble" thump
    sig = env * np.sin(2 * np.pi * (140 - 200 * t) * t)
    return _synth_wav("bounce.wav", sig * 0.9)


def _synth_wall():
    sr = 44100; dur = 0.08
    t = np.linspace(0, dur, int(sr * dur), endpoint=False)
    env = np.exp(-t * 70)
    sig = env * np.sin(2 * np.pi * 320 * t)
    return _synth_wav("wall.wav", sig * 0.6)


# ──────────────────────────────────────────
# Ursina App
# ──────────────────────────────────────────

app = Ursina(borderless=False, title="Basketball Court", size=(1280, 800))

# ── Court ─────────────────────────────────
floor = Entity(
    model="cube",
    color=color.hsv(30, 0.67, 0.78),
    scale=(court.COURT_LENGTH, court.FLOOR_THICKNESS, court.COURT_WIDTH),
    position=(0, 0, 0),
)

for pts in court.court_lines().values():
    Entity(model=Mesh(vertices=[to_render(p) for p in pts], mode="line", thickness=2),
           color=color.white)


def _build_hoop(side: str) -> Entity:
    """Backboard, rim ring, net strands, pole and arm for one side."""
    x = court.hoop_positions()[side]
    toward_centre = 1.0 if side == "left" else -1.0
    root = Entity(position=(x, 0, 0))

    Entity(parent=root, model="cube", color=color.rgba(1, 1, 1, 0.6),
           scale=(0.05, court.BACKBOARD_HEIGHT, court.BACKBOARD_WIDTH),
           position=(0, court.RIM_HEIGHT, 0))

    rim_x = toward_centre * court.RIM_FORWARD
    ring = []
    seg = 48
    for i in range(seg + 1):
        a = i / seg * math.pi * 2
        ring.append(Vec3(rim_x + math.cos(a) * court.RIM_RADIUS,
                         court.RIM_HEIGHT,
                         math.sin(a) * court.RIM_RADIUS))
    Entity(parent=root, model=Mesh(vertices=ring, mode="line", thickness=4),
           color=color.orange)

    net = []
    strands, h = 8, 0.5
    for i in range(strands):
        a = i / strands * math.pi * 2
        ox, oz = math.cos(a) * court.RIM_RADIUS, math.sin(a) * court.RIM_RADIUS
        net.append(Vec3(rim_x + ox, court.RIM_HEIGHT, oz))
        net.append(Vec3(rim_x + ox * 0.6, court.RIM_HEIGHT - h, oz * 0.6))
    Entity(parent=root, model=Mesh(vertices=net, mode="line", thickness=1),
           color=color.white)

    Entity(parent=root, model="cube", color=color.gray,
           scale=(0.2, 3.5, 0.2), position=(-toward_centre * 0.6, 1.75, 0))
    Entity(parent=root, model="cube", color=color.gray,
           scale=(0.6, 0.1, 0.1), position=(-toward_centre * 0.3, 3.0, 0))
    return root


hoops = {side: _build_hoop(side) for side in ("left", "right")}

# ── Ball entity (L3 owns this) ────────────────────────────────────────────────
ball_entity = Entity(
    model="sphere",
    texture=_ball_texture(),
    scale=BALL_RADIUS * 2,
    position=to_render(ctrl.ball.position),
)

# ── Sound effects ─────────────────────────────────────────────────────────────
bounce_path = _synth_bounce()
wall_path   = _synth_wall()
snd_bounce = None
snd_wall   = None

# ── UI ────────────────────────────────────────────────────────────────────────
score_text = Text(text="Score: 0 - 0", position=(-0.85, 0.47), scale=1.2, color=color.white)
power_text = Text(text="Shot Power: 0%", position=(-0.85, 0.42), scale=1.2, color=color.white)
info_text = Text(text=DEFAULT_INFO_MSG, position=(-0.85, -0.42), scale=1.0, color=color.white)
status_text = Text(text="", position=(-0.85, -0.46), scale=1.0, color=color.light_gray)

# ── Camera ────────────────────────────────────────────────────────────────────
ec = EditorCamera(enabled=ctrl.orbit_enabled)
ec.position = (0, 0, 0)
ec.rotation = (27, 0, 0)
camera.position = (0, 0, -34)
camera.fov = 75


# ──────────────────────────────────────────
# Sound loading (deferred until app is running)
# ──────────────────────────────────────────

_sounds_loaded = False


def _load_sounds():
    global snd_bounce, snd_wall, _sounds_loaded
    if _sounds_loaded:
        return
    _sounds_loaded = True
    try:
        snd_bounce = Audio(bounce_path, autoplay=False)
        snd_wall   = Audio(wall_path, autoplay=False)
    except Exception as exc:
        print(f"[AUDIO] sounds disabled: {exc}")


def _play_collision_sounds(events):
    for evt in events:
        vol = min(1.0, evt.get("speed", 0.0) * 0.15)
        if vol < 0.05:
            continue
        if evt["type"] == "floor" and snd_bounce:
            snd_bounce.volume = vol
            snd_bounce.play()
        elif evt["type"] == "wall" and snd_wall:
            snd_wall.volume = vol * 0.7
            snd_wall.play()


# ──────────────────────────────────────────
# Controller events
# ──────────────────────────────────────────

def _update_power_meter():
    power_text.text = f"Shot Power: {ctrl.power_percent}%"
    power_text.color = color.red if ctrl.power_hot else color.white


def _handle_controller_event(ev: dict):
    t = ev["type"]
    if t == "update_power_meter":
        _update_power_meter()
    elif t == "orbit":
        ec.enabled = ev["enabled"]


# ──────────────────────────────────────────
# Input handler
# ──────────────────────────────────────────

def input(key):
    if key.endswith(" hold"):
        return
    if key.endswith(" up"):
        ctrl.key_up(key[:-len(" up")])
    else:
        ctrl.key_down(key)


# ──────────────────────────────────────────
# Update loop
# ──────────────────────────────────────────

def update():
    _load_sounds()

    ctrl.tick(ursina_time.dt)

    # ── Process pending events (L2 → L3 UI commands) ─────────────────────────
    for ev in ctrl.pending_events:
        _handle_controller_event(ev)
    ctrl.pending_events.clear()

    _play_collision_sounds(ctrl.physics_events)

    if status_text.text != ctrl.status_msg:
        status_text.text = ctrl.status_msg

    # ── Ball entity sync ──────────────────────────────────────────────────────
    ball_entity.position = to_render(ctrl.ball.position)


# ──────────────────────────────────────────
# Run
# ──────────────────────────────────────────

if __name__ == "__main__":
    app.run()
