"""
Particle field for the polymer sketch.

Particles are stored as parallel numpy arrays (one row per particle) so the
O(n^2) force pass and the integration step can run as Numba-compiled
loops. The field runs in one of two modes:

- ``fade``: particles spawn at the canvas centre, lose lifespan every frame
  and die when it runs out or when they leave the canvas. Dead rows are
  swept out at the end of the frame.
- ``wrap``: a fixed population scattered over the canvas that never dies;
  positions wrap around the edges. The whole field is rebuilt when the
  concentration changes.
"""

import logging

import numpy as np
import pygame
from numba import jit

import config

logger = logging.getLogger(__name__)


@jit(nopython=True, fastmath=True)
def calculate_forces(
    positions,
    noise,
    accelerations,
    repulsion_radius,
    repulsion_scale,
    attraction_radius,
    attraction_strength,
):
    """
    Accumulate the net force on every particle into ``accelerations``.

    Each particle starts from its noise vector, is pushed away from every
    neighbour closer than ``repulsion_radius`` (harder the closer it is) and
    pulled with constant strength toward neighbours between the repulsion
    and attraction radii. Coincident particles exert no force on each other.
    """
    n = positions.shape[0]

    # Reset accelerations
    accelerations[:] = 0

    for i in range(n):
        accelerations[i, 0] += noise[i, 0]
        accelerations[i, 1] += noise[i, 1]

        for j in range(n):
            if i == j:
                continue

            # Points from the other particle to this one
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            dist = np.sqrt(dx * dx + dy * dy)

            if dist == 0:
                continue

            if dist < repulsion_radius:
                force = 1.0 / (dist * repulsion_scale)
                accelerations[i, 0] += dx / dist * force
                accelerations[i, 1] += dy / dist * force
            elif dist > repulsion_radius and dist < attraction_radius:
                accelerations[i, 0] -= dx / dist * attraction_strength
                accelerations[i, 1] -= dy / dist * attraction_strength


@jit(nopython=True, fastmath=True)
def integrate(positions, velocities, accelerations, max_speeds):
    n = positions.shape[0]

    for i in range(n):
        vx = velocities[i, 0] + accelerations[i, 0]
        vy = velocities[i, 1] + accelerations[i, 1]

        # Cap the speed
        speed_sq = vx * vx + vy * vy
        limit = max_speeds[i]
        if speed_sq > limit * limit:
            scale = limit / np.sqrt(speed_sq)
            vx *= scale
            vy *= scale

        velocities[i, 0] = vx
        velocities[i, 1] = vy
        positions[i, 0] += vx
        positions[i, 1] += vy


@jit(nopython=True, fastmath=True)
def kill_out_of_bounds(positions, sizes, lifespans, decay, width, height):
    """Age every particle and zero the lifespan of those past the canvas edge."""
    n = positions.shape[0]

    for i in range(n):
        lifespans[i] = max(lifespans[i] - decay, 0.0)

        radius = sizes[i] / 2
        x = positions[i, 0]
        y = positions[i, 1]
        if x > width + radius or x < -radius or y > height + radius or y < -radius:
            lifespans[i] = 0.0


@jit(nopython=True, fastmath=True)
def wrap_edges(positions, width, height):
    n = positions.shape[0]

    for i in range(n):
        if positions[i, 0] > width:
            positions[i, 0] = 0.0
        elif positions[i, 0] < 0:
            positions[i, 0] = width

        if positions[i, 1] > height:
            positions[i, 1] = 0.0
        elif positions[i, 1] < 0:
            positions[i, 1] = height


def palette_rgba(palette):
    """Convert hex palette entries to an (n, 4) uint8 array."""
    return np.array([tuple(pygame.Color(color)) for color in palette], dtype=np.uint8)


def repulsion_radius(settings, tuning):
    low, high = tuning.repulsion_range
    return config.map_range(settings.polymer, 0, 100, low, high)


def noise_strength(settings, tuning):
    low, high = tuning.noise_range
    return config.map_range(settings.energy, 0, 100, low, high)


def random_unit_vectors(rng, count):
    angles = rng.uniform(0, 2 * np.pi, size=count)
    return np.column_stack((np.cos(angles), np.sin(angles)))


class ParticleField:
    def __init__(self, mode=config.MODE, width=config.WIDTH, height=config.HEIGHT, rng=None):
        self.mode = mode
        self.tuning = config.tuning_for(mode)
        self.width = width
        self.height = height
        self.rng = rng if rng is not None else np.random.default_rng()
        self.palette = palette_rgba(config.PALETTE)

        self.positions = np.zeros((0, 2), dtype=np.float64)
        self.velocities = np.zeros((0, 2), dtype=np.float64)
        self.accelerations = np.zeros((0, 2), dtype=np.float64)
        self.max_speeds = np.zeros(0, dtype=np.float64)
        self.colors = np.zeros((0, 4), dtype=np.uint8)
        self.sizes = np.zeros(0, dtype=np.float64)
        self.lifespans = np.zeros(0, dtype=np.float64)

    def __len__(self):
        return self.positions.shape[0]

    def _append(self, positions, velocities, sizes=None, lifespans=None):
        count = positions.shape[0]
        if sizes is None:
            sizes = self.rng.uniform(*config.SIZE_RANGE, size=count)
        if lifespans is None:
            low, high = self.tuning.lifespan_range
            lifespans = np.full(count, low) if low == high else self.rng.uniform(low, high, size=count)

        colors = self.palette[self.rng.integers(0, len(self.palette), size=count)]

        self.positions = np.concatenate((self.positions, positions))
        self.velocities = np.concatenate((self.velocities, velocities))
        self.accelerations = np.concatenate((self.accelerations, np.zeros((count, 2))))
        self.max_speeds = np.concatenate((self.max_speeds, np.full(count, self.tuning.max_speed)))
        self.colors = np.concatenate((self.colors, colors))
        self.sizes = np.concatenate((self.sizes, np.asarray(sizes, dtype=np.float64)))
        self.lifespans = np.concatenate((self.lifespans, np.asarray(lifespans, dtype=np.float64)))

    def add(self, x, y, vx=0.0, vy=0.0, size=None, lifespan=None):
        """Append a single particle with an explicit position and velocity."""
        self._append(
            np.array([[x, y]], dtype=np.float64),
            np.array([[vx, vy]], dtype=np.float64),
            sizes=None if size is None else [size],
            lifespans=None if lifespan is None else [lifespan],
        )

    def spawn(self, count):
        """Create ``count`` new particles the way the current mode seeds them."""
        if count <= 0:
            return

        if self.mode == "fade":
            # Burst outward from the centre
            positions = np.tile([self.width / 2, self.height / 2], (count, 1)).astype(np.float64)
            speeds = self.rng.uniform(*self.tuning.spawn_speed_range, size=count)
            velocities = random_unit_vectors(self.rng, count) * speeds[:, None]
        else:
            positions = np.column_stack(
                (
                    self.rng.uniform(0, self.width, size=count),
                    self.rng.uniform(0, self.height, size=count),
                )
            )
            velocities = np.zeros((count, 2), dtype=np.float64)

        self._append(positions, velocities)

    def replenish(self, target):
        """Top the field up to ``target`` particles."""
        self.spawn(int(target) - len(self))

    def reset(self, count):
        """Discard every particle and scatter ``count`` fresh ones."""
        logger.debug(f"Rebuilding {self.mode} field with {int(count)} particles")
        self.positions = self.positions[:0]
        self.velocities = self.velocities[:0]
        self.accelerations = self.accelerations[:0]
        self.max_speeds = self.max_speeds[:0]
        self.colors = self.colors[:0]
        self.sizes = self.sizes[:0]
        self.lifespans = self.lifespans[:0]
        self.spawn(int(count))

    def calculate_forces(self, settings):
        noise = random_unit_vectors(self.rng, len(self)) * noise_strength(settings, self.tuning)
        calculate_forces(
            self.positions,
            noise,
            self.accelerations,
            repulsion_radius(settings, self.tuning),
            config.REPULSION_SCALE,
            self.tuning.attraction_radius,
            self.tuning.attraction_strength,
        )

    def update(self):
        """Integrate and apply the mode's boundary policy."""
        integrate(self.positions, self.velocities, self.accelerations, self.max_speeds)
        if self.mode == "fade":
            kill_out_of_bounds(
                self.positions,
                self.sizes,
                self.lifespans,
                self.tuning.lifespan_decay,
                self.width,
                self.height,
            )
        else:
            wrap_edges(self.positions, self.width, self.height)

    def step(self, settings):
        """Run one frame of simulation: replenish, forces, integration, edges."""
        if self.mode == "fade":
            self.replenish(settings.concentration)
        if len(self) == 0:
            return
        self.calculate_forces(settings)
        self.update()

    def is_dead(self):
        return self.lifespans <= 0

    def sweep(self):
        """Drop dead particles, keeping the survivors in order."""
        alive = ~self.is_dead()
        if alive.all():
            return 0

        removed = int(len(self) - alive.sum())
        self.positions = self.positions[alive]
        self.velocities = self.velocities[alive]
        self.accelerations = self.accelerations[alive]
        self.max_speeds = self.max_speeds[alive]
        self.colors = self.colors[alive]
        self.sizes = self.sizes[alive]
        self.lifespans = self.lifespans[alive]
        return removed

    def display_colors(self):
        """RGBA per particle, fading out with the remaining lifespan in fade mode."""
        colors = self.colors.copy()
        if self.mode == "fade":
            colors[:, 3] = np.clip(self.lifespans, 0, 255).astype(np.uint8)
        return colors
