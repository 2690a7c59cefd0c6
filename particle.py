# particle.py
"""
Manages the state of all particles in the simulation.

This module defines the Particle entity, the Bounds used for spawning and
for boundary reflection, and the ParticleSystem class, which stores the
state of every particle (position, velocity, mass, class) in NumPy arrays.
"""
import logging
import math
import numpy as np
from typing import Any, Iterator, List, Mapping, NamedTuple, Sequence, Tuple, Union

# --- Data Contracts ---
#
# class Particle:
#   - create(class_id, position_bounds, mass_range, rng) -> Particle
#     - Position sampled uniformly per axis inside position_bounds, zero
#       velocity, mass sampled uniformly from mass_range.
#   - translate(bounds) -> None
#     - position += velocity, then each axis that ended up outside the bounds
#       (strict comparison) has its velocity component negated. The position
#       itself is never clamped.
#   - apply_acceleration(acc, max_speed) -> None
#     - velocity += acc, then the velocity length is clamped to max_speed.
#
# class ParticleSystem:
#   - Invariants:
#     - self.positions is a NumPy array of shape (N, 2) of dtype float64.
#     - self.velocities is a NumPy array of shape (N, 2) of dtype float64.
#     - self.masses is a NumPy array of shape (N,) of dtype float64.
#     - self.classes is a NumPy array of shape (N,) of dtype int64.
#     - N never changes after construction.


class Bounds(NamedTuple):
    """An axis-aligned rectangle with y pointing up."""
    left: float
    right: float
    bottom: float
    top: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @classmethod
    def coerce(cls, value: Union["Bounds", Mapping[str, float], Sequence[float]]) -> "Bounds":
        """
        Builds Bounds from a Bounds, a mapping with left/right/bottom/top keys
        or a 4-sequence in that order.
        """
        if isinstance(value, Bounds):
            bounds = value
        elif isinstance(value, Mapping):
            bounds = cls(
                float(value['left']), float(value['right']),
                float(value['bottom']), float(value['top'])
            )
        else:
            left, right, bottom, top = value
            bounds = cls(float(left), float(right), float(bottom), float(top))

        if not all(math.isfinite(edge) for edge in bounds):
            raise ValueError(f"Invalid bounds {tuple(bounds)}: every edge must be finite.")
        if bounds.left > bounds.right or bounds.bottom > bounds.top:
            raise ValueError(f"Invalid bounds {tuple(bounds)}: left/bottom must not exceed right/top.")
        return bounds


def translate_positions(positions: np.ndarray, velocities: np.ndarray, bounds: Bounds) -> None:
    """
    Moves positions by one velocity step and reflects velocities on each axis
    that left the bounds. Works in place on a single (2,) vector or an (N, 2)
    array.
    """
    positions += velocities

    x = positions[..., 0]
    y = positions[..., 1]
    flip_x = (x > bounds.right) | (x < bounds.left)
    flip_y = (y > bounds.top) | (y < bounds.bottom)

    velocities[..., 0] = np.where(flip_x, -velocities[..., 0], velocities[..., 0])
    velocities[..., 1] = np.where(flip_y, -velocities[..., 1], velocities[..., 1])


def clamp_speed(velocities: np.ndarray, max_speed: float) -> None:
    """
    Scales every velocity longer than max_speed down to exactly max_speed,
    keeping its direction. Shorter velocities (including zero) are untouched.
    """
    # hypot avoids overflow for very large finite components.
    speed = np.hypot(velocities[..., 0], velocities[..., 1])
    over = speed > max_speed
    scale = np.where(over, max_speed / np.maximum(speed, np.finfo(np.float64).tiny), 1.0)
    velocities *= scale[..., np.newaxis]


def _as_vector(value: Any) -> np.ndarray:
    """float64 arrays are kept as-is so row views stay live; anything else is copied."""
    if isinstance(value, np.ndarray) and value.dtype == np.float64:
        return value
    return np.array(value, dtype=np.float64)


class Particle:
    """
    A single particle: class, position, velocity and mass.

    When obtained from a ParticleSystem, position and velocity are views into
    the system's arrays, so in-place updates write through.
    """
    __slots__ = ('class_id', 'position', 'velocity', 'mass')

    def __init__(self, class_id: int, position: Any, velocity: Any = (0.0, 0.0), mass: float = 1.0):
        self.class_id = int(class_id)
        self.position = _as_vector(position)
        self.velocity = _as_vector(velocity)
        self.mass = float(mass)

    @classmethod
    def create(
        cls,
        class_id: int,
        position_bounds: Bounds,
        mass_range: Tuple[float, float],
        rng: np.random.Generator,
    ) -> "Particle":
        """
        Spawns a resting particle at a uniformly random spot inside
        position_bounds with a uniformly random mass from mass_range.
        """
        position = rng.uniform(
            low=[position_bounds.left, position_bounds.bottom],
            high=[position_bounds.right, position_bounds.top],
        )
        mass = rng.uniform(mass_range[0], mass_range[1])
        return cls(class_id, position, np.zeros(2, dtype=np.float64), mass)

    @property
    def size(self) -> float:
        """Display size used by renderers."""
        return float(np.sqrt(self.mass))

    def translate(self, bounds: Bounds) -> None:
        translate_positions(self.position, self.velocity, bounds)

    def apply_acceleration(self, acc: Any, max_speed: float) -> None:
        self.velocity += np.asarray(acc, dtype=np.float64)
        clamp_speed(self.velocity, max_speed)

    def __repr__(self) -> str:
        return (
            f"Particle(class_id={self.class_id}, position={self.position.tolist()}, "
            f"velocity={self.velocity.tolist()}, mass={self.mass})"
        )


class ParticleSystem:
    """
    A container for all particles, managing their state via NumPy arrays.
    """
    def __init__(self, particles: Sequence[Particle], num_classes: int = None):
        """
        Packs the given particles, in order, into the state arrays.

        Args:
            particles (Sequence[Particle]): The particles to store.
            num_classes (int): Number of classes; inferred from the particles
                if omitted.
        """
        if len(particles) == 0:
            raise ValueError("A ParticleSystem needs at least one particle.")

        self.positions = np.array([p.position for p in particles], dtype=np.float64).reshape(-1, 2)
        self.velocities = np.array([p.velocity for p in particles], dtype=np.float64).reshape(-1, 2)
        self.masses = np.array([p.mass for p in particles], dtype=np.float64)
        self.classes = np.array([p.class_id for p in particles], dtype=np.int64)
        self.num_classes = int(num_classes) if num_classes is not None else int(self.classes.max()) + 1

        if self.classes.min() < 0 or self.classes.max() >= self.num_classes:
            raise ValueError(f"Particle classes must lie in [0, {self.num_classes}).")

        logging.debug(
            f"Particle data arrays created. "
            f"Positions shape: {self.positions.shape}, "
            f"Velocities shape: {self.velocities.shape}, "
            f"Classes shape: {self.classes.shape}"
        )

    @classmethod
    def create(
        cls,
        num_classes: int,
        particles_per_class: int,
        position_bounds: Bounds,
        mass_range: Tuple[float, float],
        rng: np.random.Generator,
    ) -> "ParticleSystem":
        """
        Spawns particles_per_class particles for every class, class 0 first.
        """
        particles: List[Particle] = [
            Particle.create(class_id, position_bounds, mass_range, rng)
            for class_id in range(num_classes)
            for _ in range(particles_per_class)
        ]
        system = cls(particles, num_classes)
        logging.info(
            f"ParticleSystem initialized with {system.particle_count} "
            f"particles of {num_classes} classes."
        )
        return system

    @property
    def particle_count(self) -> int:
        return self.positions.shape[0]

    @property
    def sizes(self) -> np.ndarray:
        """Display size of every particle, sqrt(mass)."""
        return np.sqrt(self.masses)

    def translate(self, bounds: Bounds) -> None:
        """Moves every particle using its current velocity."""
        translate_positions(self.positions, self.velocities, bounds)

    def apply_accelerations(self, accelerations: np.ndarray, max_speed: float) -> None:
        """Adds one acceleration per particle and clamps the resulting speeds."""
        self.velocities += accelerations
        clamp_speed(self.velocities, max_speed)

    def __len__(self) -> int:
        return self.particle_count

    def __getitem__(self, index: int) -> Particle:
        return Particle(
            self.classes[index],
            self.positions[index],
            self.velocities[index],
            self.masses[index],
        )

    def __iter__(self) -> Iterator[Particle]:
        for i in range(self.particle_count):
            yield self[i]
