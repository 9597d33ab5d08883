"""
BloomSense Configuration Management.
===================================

This module defines the tuning space for the BloomSense gesture-signal pipeline.
The parameters are organized into the same "Layer Cake" used everywhere else:
metrics -> gates -> smoothing -> swipe -> fusion -> runtime.

! WARNING !
Every ratio threshold below was tuned by hand against one webcam and one room.
Expect to re-tune them per deployment (see tools/lab_signals.py).
"""

from pathlib import Path
import logging
import os

# --- SYSTEM PATHS ---
FILE_PATH = Path(__file__).resolve()
PROJECT_ROOT = FILE_PATH.parent.parent
DATA_DIR = PROJECT_ROOT / "data"

PATHS = {
    "TRACES_DIR": DATA_DIR / "traces",
    "REPORTS_DIR": DATA_DIR / "reports",
}

# --- LANDMARK INDICES (MediaPipe topology) ---
# Hands: 21 points. Face Mesh: 468 points (478 with refined irises).
LANDMARKS = {
    "HAND_POINTS": 21,
    "FACE_POINTS": 468,

    "WRIST": 0,
    "THUMB_TIP": 4,
    "INDEX_MCP": 5,
    "INDEX_TIP": 8,
    "MIDDLE_MCP": 9,
    "MIDDLE_TIP": 12,
    "RING_MCP": 13,
    "RING_TIP": 16,
    "PINKY_MCP": 17,
    "PINKY_TIP": 20,

    "MOUTH_LEFT": 61,
    "MOUTH_RIGHT": 291,
    "TEMPLE_LEFT": 234,
    "TEMPLE_RIGHT": 454,
    "BROW_LEFT": 105,
    "EYE_LEFT": 159,
    "BROW_RIGHT": 334,
    "EYE_RIGHT": 386,
    "FOREHEAD": 10,
    "CHIN": 152,
}

# --- MASTER CONFIGURATION ---
CONFIG = {
    # =========================================================
    # LAYER 1: METRICS (The Ruler)
    # =========================================================
    "EPSILON": 1e-6,                # Floor for every reference distance used as divisor

    "OPEN_RATIO_MIN": 1.1,          # Tip/knuckle ratio of a closed fist
    "OPEN_RATIO_SPAN": 0.6,         # 1.1 + 0.6 = fully open hand
    "PINCH_RATIO_MAX": 0.35,        # Thumb-index gap (in palm lengths) that reads as 0
    "FIST_OPEN_RATIO": 1.8,         # Mean tip-wrist distance of an open hand
    "FIST_CLOSED_RATIO": 1.0,       # ... and of a closed fist

    "SMILE_RATIO_MIN": 0.36,        # Mouth width / face width, neutral
    "SMILE_RATIO_MAX": 0.46,        # ... full smile
    "BROW_RATIO_MIN": 0.10,         # Brow-eye gap / face height, resting
    "BROW_RATIO_MAX": 0.14,         # ... fully raised

    # =========================================================
    # LAYER 2: ZONE GATES (The Stage)
    # =========================================================
    # (x_min, x_max, y_min, y_max) in normalized image space, inclusive.
    "GATES": {
        "full": (0.0, 1.0, 0.0, 1.0),
        "stage": (0.25, 0.75, 0.25, 0.75),      # Fist is only trusted center-frame
        "swipe_band": (0.15, 0.85, 0.0, 1.0),   # Lens distortion kills edge swipes
    },

    # =========================================================
    # LAYER 3: SWIPE (The Flick)
    # =========================================================
    "SWIPE_REACQUIRE_S": 0.10,      # Gap that counts as a fresh acquisition (no velocity)
    "SWIPE_VELOCITY_THRESHOLD": 0.35,  # |dx/dt| in image widths per second
    "SWIPE_INTENSITY": 1.3,         # Impulse = velocity * intensity
    "SWIPE_GATE": "swipe_band",

    # =========================================================
    # LAYER 4: FUSION (The Referee)
    # =========================================================
    "PRIMARY_HAND": "right",        # Dominant slot for pinch / fist
    "HAND_SIDE_SOURCE": "label",    # "label" trusts the detector, "position" uses palm x
    "CURSOR_MIRROR_X": False,       # Frames are already flipped before detection

    # =========================================================
    # LAYER 5: SCENE (The Flower)
    # =========================================================
    "SCENE": {
        "BASE_ROTATION_SPEED": 0.1,   # rad/s with no interaction
        "ROTATION_BOOST": 0.5,        # Extra rad/s at full openness
        "SPIN_FRICTION": 0.9,         # Fraction of swipe momentum lost per second
        "BASE_SCALE": 1.0,
        "MAX_GROWTH": 0.15,           # Openness breathing
        "FIST_SHRINK": 0.4,           # Scale lost at full fist
        "BEAM_LENGTH_SCALE": 1.5,     # Eyebrows stretch the beams
        "BEAM_ROTATION_BOOST": 0.8,
        "LIGHT_BASE": 5.0,
        "LIGHT_MAX": 50.0,
        "GESTURE_LIGHT_MAX": 120.0,
        "PINCH_LIGHT_WEIGHT": 0.8,
    },

    # =========================================================
    # LAYER 6: RUNTIME
    # =========================================================
    "TARGET_FPS": 30,
    "CAMERA_INDEX": 0,
    "CAPTURE_WIDTH": 640,
    "CAPTURE_HEIGHT": 480,
    "MAX_HANDS": 2,
    "MIN_DETECTION_CONFIDENCE": 0.5,
    "MIN_TRACKING_CONFIDENCE": 0.5,
    "MODEL_COMPLEXITY": 0,          # 0 = lite, 1 = full
    "TRACK_FACE": True,
    "LOG_LEVEL": "INFO",
    "TRACE_MAX_ROWS": 36000,        # ~20 min at 30 fps
}

# --- CHANNEL POLICY TABLE ---
# One row per smoothed channel. The handlers never hardcode a rate.
#   rise / fall : smoothing coefficient toward a higher / lower target
#   decay       : multiplier per detection frame while the entity is absent
#   gate        : name in CONFIG["GATES"] the reference point must satisfy
#   entity      : "hand" or "face"
#   fusion      : "max", "dominant", "per_hand" (hand channels only)
#   latch       : (on, off) hysteresis thresholds for the engaged flag
CHANNEL_POLICIES = {
    "handOpenness": {
        "rise": 0.15, "fall": 0.40, "decay": 0.95,
        "gate": "full", "entity": "hand", "fusion": "max",
        "latch": (0.5, 0.35),
    },
    "pinch": {
        "rise": 0.20, "fall": 0.40, "decay": 0.95,
        "gate": "full", "entity": "hand", "fusion": "dominant",
        "latch": (0.4, 0.25),
    },
    "fistClosure": {
        "rise": 0.35, "fall": 0.35, "decay": 0.90,
        "gate": "stage", "entity": "hand", "fusion": "dominant",
        "latch": (0.7, 0.5),
    },
    "smile": {
        "rise": 0.10, "fall": 0.40, "decay": 0.90,
        "gate": "full", "entity": "face", "fusion": None,
        "latch": (0.3, 0.2),
    },
    "eyebrowRaise": {
        "rise": 0.10, "fall": 0.40, "decay": 0.90,
        "gate": "full", "entity": "face", "fusion": None,
        "latch": (0.3, 0.2),
    },
    "leftHandHeight": {
        "rise": 0.20, "fall": 0.20, "decay": 0.95,
        "gate": "full", "entity": "hand", "fusion": "per_hand",
        "latch": None,
    },
    "rightHandHeight": {
        "rise": 0.20, "fall": 0.20, "decay": 0.95,
        "gate": "full", "entity": "hand", "fusion": "per_hand",
        "latch": None,
    },
}


def init_environment(config=None):
    """
    Creates runtime directories and configures logging.
    """
    cfg = config or CONFIG
    os.makedirs(PATHS["TRACES_DIR"], exist_ok=True)
    os.makedirs(PATHS["REPORTS_DIR"], exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, str(cfg.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
