"""Runtime settings, each overridable from the environment."""

import os

HOST = os.environ.get("HOST", "127.0.0.1")
PORT = int(os.environ.get("PORT", 5050))

LOG_LEVEL = os.environ.get("FIELDAR_LOG_LEVEL", "INFO")

# Heads-up projection
FIELD_OF_VIEW_DEG = float(os.environ.get("FIELDAR_FOV_DEG", 65.0))
VISIBLE_RADIUS_M = float(os.environ.get("FIELDAR_VISIBLE_RADIUS_M", 50_000.0))
HUD_WIDTH = int(os.environ.get("FIELDAR_HUD_WIDTH", 1280))
HUD_HEIGHT = int(os.environ.get("FIELDAR_HUD_HEIGHT", 720))

# Ground frame: terrain = origin altitude - observer height - ground offset
OBSERVER_HEIGHT_M = float(os.environ.get("FIELDAR_OBSERVER_HEIGHT_M", 1.6))
GROUND_OFFSET_M = float(os.environ.get("FIELDAR_GROUND_OFFSET_M", 0.0))
FENCE_HEIGHT_M = float(os.environ.get("FIELDAR_FENCE_HEIGHT_M", 3.0))

# Fixes averaged into the observer origin
SMOOTHING_SAMPLES = int(os.environ.get("FIELDAR_SMOOTHING_SAMPLES", 5))
if SMOOTHING_SAMPLES < 1:
    raise ValueError("FIELDAR_SMOOTHING_SAMPLES must be at least 1")
