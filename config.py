# Configuration file for sketch.py

from dataclasses import dataclass

# Display settings
WIDTH = 800
HEIGHT = 400
PANEL_HEIGHT = 120
FPS = 60
TITLE = "Polymer Particles"

# Simulation mode: "fade" spawns from the centre and kills particles at the
# edges, "wrap" scatters a fixed population over a torus
MODE = "fade"
MODES = ("fade", "wrap")

# Recording settings
RECORD = False
OUTPUT_FILE = "simulation.mp4"
FRAME_LIMIT = 0  # 0 runs until the window is closed

# Color settings
PALETTE = ["#4a69bd", "#5e8ac6", "#2c3e50", "#7f8c8d"]
BACKGROUNDS = {
    "fade": (253, 251, 247, 80),
    "wrap": (15, 18, 28, 40),
}
PANEL_COLOR = (236, 233, 226)
TEXT_COLOR = (44, 62, 80)
TRACK_COLOR = (200, 204, 210)
KNOB_COLOR = (74, 105, 189)

# Particle settings
SIZE_RANGE = (3, 7)
REPULSION_SCALE = 0.2


@dataclass(frozen=True)
class ModeTuning:
    noise_range: tuple
    repulsion_range: tuple
    attraction_radius: float
    attraction_strength: float
    max_speed: float
    lifespan_range: tuple
    lifespan_decay: float
    spawn_speed_range: tuple


TUNINGS = {
    "fade": ModeTuning(
        noise_range=(0.0, 0.5),
        repulsion_range=(10.0, 100.0),
        attraction_radius=0.0,  # no cohesion band
        attraction_strength=0.0,
        max_speed=5.0,
        lifespan_range=(150.0, 300.0),
        lifespan_decay=1.5,
        spawn_speed_range=(1.0, 4.0),
    ),
    "wrap": ModeTuning(
        noise_range=(0.0, 1.0),
        repulsion_range=(5.0, 80.0),
        attraction_radius=100.0,
        attraction_strength=0.05,
        max_speed=3.0,
        lifespan_range=(float("inf"), float("inf")),
        lifespan_decay=0.0,
        spawn_speed_range=(0.0, 0.0),
    ),
}

# Slider ranges as (min, max, step)
POLYMER_RANGE = (0, 100, 1)
CONCENTRATION_RANGE = (0, 300, 1)
ENERGY_RANGE = (0, 100, 1)


@dataclass(frozen=True)
class Settings:
    polymer: float = 70
    concentration: int = 150
    energy: float = 30


DEFAULT_SETTINGS = Settings()


def map_range(value, start1, stop1, start2, stop2):
    """Linearly rescale value from [start1, stop1] into [start2, stop2] (unclamped)."""
    return start2 + (stop2 - start2) * ((value - start1) / (stop1 - start1))


def tuning_for(mode):
    try:
        return TUNINGS[mode]
    except KeyError:
        raise ValueError(f"unknown mode {mode!r}, expected one of {MODES}") from None
