# constants.py
"""
Application-level constants.

These values are static and do not change between runs. They cover the
frame-rate model used to scale time, the defaults applied when a particle
configuration leaves a field out, and the naming of persisted and exported
position data.
"""

# Frame model
# Lifespans and velocities are expressed in frame-equivalents at this rate,
# whatever the real frame rate of the driver is.
FPS = 60
# Scale applied to spreadFactor per second of elapsed time.
SPREAD_TIME_SCALE = 50

# --- Canvas defaults ---
DEFAULT_THRESHOLD = 100
DEFAULT_CANVAS_ID = "default"
SMOOTHING_LEVELS = ("low", "medium", "high")

# --- Particle defaults ---
# Used when the configuration omits a value.
DEFAULT_QUANTITY = 2_000
DEFAULT_SIZE = 5
DEFAULT_VELOCITY = 2
DEFAULT_TRAIL_LENGTH = 2
DEFAULT_LIFESPAN = 60
DEFAULT_SPREAD_FACTOR = 3

# --- Curvature defaults ---
DEFAULT_CURVE_AMPLITUDE = 5
DEFAULT_CURVE_FREQUENCY = 0.1
DEFAULT_CURVE = "sin"
CURVE_MODES = ("sin", "cos")
# Phase offset per pixel of x position, and the weight of the steering term.
CURVE_POSITION_PHASE = 0.05
CURVE_STRENGTH = 0.1

# Random particle colors are three-digit hex values in this range.
RANDOM_COLOR_MIN = 0x100
RANDOM_COLOR_MAX = 0xFFF

# --- Registry markers ---
# Transparent by default, so markers stay invisible unless configured.
DEFAULT_MARKER_COLOR = "transparent"
DEFAULT_MARKER_SIZE = 4
MARKER_LABEL_OFFSET = 5
MARKER_FONT_SIZE = 14

# Per-canvas frame statistics are logged once every this many frames.
LOG_THROTTLE_FRAMES = 300

# --- Storage ---
STORAGE_KEY_PREFIX = "entropy-particles"
SESSION_STORAGE = "sessionStorage"
LOCAL_STORAGE = "localStorage"
STORAGE_TYPES = (SESSION_STORAGE, LOCAL_STORAGE)
EXPORT_FILENAME = "entropy-particles.json"

# --- Window ---
WINDOW_TITLE = "Entropy Particles"
WINDOW_SIZE = (1280, 720)
WINDOW_BACKGROUND_COLOR = (0, 0, 0)
