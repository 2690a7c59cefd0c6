# simulation.py
"""
Handles the core simulation logic and physics calculations.

This module defines the Simulation class, which owns the interaction matrix
and the particle system and advances them by one tick per `step` call. A
tick first moves every particle with the velocity it ended the previous
tick with, then computes every particle's acceleration from the moved
positions and applies it.
"""
import logging
import numpy as np
from typing import Any, Dict, Optional
from numba import jit, prange

from config import validate_simulation_params
from constants import DEFAULT_EPSILON, GRID_CELL_PADDING, MAX_GRID_SPAN
from matrix import InteractionMatrix
from particle import Bounds, ParticleSystem

# --- Data Contracts ---
#
# initialize(params: Dict[str, Any]) -> Simulation:
#   - Inputs:
#     - params: The "simulation_parameters" section of config.json.
#   - Outputs: A ready-to-step Simulation.
#   - Side Effects: Validates the parameters (ValueError on bad config) and
#     seeds the only random generator used to build the initial state.
#
# step(state: Simulation, bounds) -> None:
#   - Inputs:
#     - state: A Simulation returned by initialize.
#     - bounds: Viewport bounds for this tick (Bounds, mapping or 4-sequence).
#   - Outputs: None
#   - Side Effects: Advances the particle state by exactly one tick.
#   - Invariants: Particle count and classes never change. Every speed is
#     <= max_speed after the tick.


@jit(nopython=True)
def _pairwise_accelerations_numba(positions, classes, masses, matrix, cutoff_sq, epsilon):
    """
    Numba-jitted O(N^2) accumulation of per-particle accelerations.

    Particle i is pulled towards (or pushed away from) every other particle j
    within the cutoff by matrix[class_i, class_j] * mass_j / max(r^2, epsilon).
    Only particle i receives the contribution, so forces are not reciprocal.
    Contributions are summed in ascending j.
    """
    particle_count = positions.shape[0]
    accelerations = np.zeros_like(positions)

    for i in prange(particle_count):
        xi = positions[i, 0]
        yi = positions[i, 1]
        class_i = classes[i]
        ax = 0.0
        ay = 0.0

        for j in range(particle_count):
            if i == j:
                continue

            rx = positions[j, 0] - xi
            ry = positions[j, 1] - yi
            r2 = rx * rx + ry * ry
            if r2 > cutoff_sq:
                continue

            g = matrix[class_i, classes[j]]
            magnitude = (g * masses[j]) / max(r2, epsilon)

            # A zero-length offset has no direction and contributes nothing.
            length = np.sqrt(r2)
            if length > 0.0:
                ax += magnitude * (rx / length)
                ay += magnitude * (ry / length)

        accelerations[i, 0] = ax
        accelerations[i, 1] = ay

    return accelerations


# Same loop, rows spread across threads. The inner j order is unchanged, so
# the result is identical to the serial kernel.
_pairwise_accelerations_parallel = jit(nopython=True, parallel=True)(
    _pairwise_accelerations_numba.py_func
)


def _build_grid(positions: np.ndarray, cell_size: float):
    """
    Bins particles into the occupied cells of a uniform grid anchored at the
    lower-left corner of their bounding box.

    Only occupied cells are stored, keyed by cell_x * grid_height + cell_y.
    Returns the per-particle cell coordinates, the particle indices sorted by
    cell key, the sorted unique keys, the start offset of each key in that
    ordering, and the grid height. Returns None when the keys would not fit
    in int64.
    """
    origin = positions.min(axis=0)
    extent = (positions.max(axis=0) - origin) / cell_size
    if extent[0] + 1.0 >= MAX_GRID_SPAN or extent[1] + 1.0 >= MAX_GRID_SPAN:
        return None

    cells = np.floor((positions - origin) / cell_size).astype(np.int64)
    grid_height = int(cells[:, 1].max()) + 1

    cell_keys = cells[:, 0] * grid_height + cells[:, 1]
    order = np.argsort(cell_keys, kind='stable').astype(np.int64)
    unique_keys, starts = np.unique(cell_keys[order], return_index=True)
    cell_starts = np.append(starts, positions.shape[0]).astype(np.int64)
    return cells, order, unique_keys.astype(np.int64), cell_starts, grid_height


@jit(nopython=True)
def _grid_accelerations_numba(
    positions, classes, masses, matrix, cutoff_sq, epsilon,
    cells, order, cell_keys, cell_starts, grid_height
):
    """
    Numba-jitted accumulation restricted to the 3x3 neighbouring grid cells.

    With a cell size of at least the cutoff radius, every pair within the
    cutoff is visited, so only the summation order differs from the O(N^2)
    kernel. Neighbour cells are found by binary search over the occupied
    cell keys.
    """
    particle_count = positions.shape[0]
    occupied = cell_keys.shape[0]
    accelerations = np.zeros_like(positions)

    for i in prange(particle_count):
        xi = positions[i, 0]
        yi = positions[i, 1]
        class_i = classes[i]
        cell_x = cells[i, 0]
        cell_y = cells[i, 1]
        ax = 0.0
        ay = 0.0

        for dx in range(-1, 2):
            nx = cell_x + dx
            if nx < 0:
                continue
            for dy in range(-1, 2):
                ny = cell_y + dy
                if ny < 0 or ny >= grid_height:
                    continue
                key = nx * grid_height + ny
                slot = np.searchsorted(cell_keys, key)
                if slot >= occupied or cell_keys[slot] != key:
                    continue
                for k in range(cell_starts[slot], cell_starts[slot + 1]):
                    j = order[k]
                    if i == j:
                        continue

                    rx = positions[j, 0] - xi
                    ry = positions[j, 1] - yi
                    r2 = rx * rx + ry * ry
                    if r2 > cutoff_sq:
                        continue

                    g = matrix[class_i, classes[j]]
                    magnitude = (g * masses[j]) / max(r2, epsilon)
                    length = np.sqrt(r2)
                    if length > 0.0:
                        ax += magnitude * (rx / length)
                        ay += magnitude * (ry / length)

        accelerations[i, 0] = ax
        accelerations[i, 1] = ay

    return accelerations


_grid_accelerations_parallel = jit(nopython=True, parallel=True)(
    _grid_accelerations_numba.py_func
)


class Simulation:
    """
    Owns the interaction matrix and the particle system, and advances them
    one tick at a time.
    """
    def __init__(
        self,
        particles: ParticleSystem,
        matrix: InteractionMatrix,
        params: Dict[str, Any],
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Initializes the simulation environment.

        Args:
            particles (ParticleSystem): The particle system to simulate.
            matrix (InteractionMatrix): Class-to-class coefficients.
            params (Dict[str, Any]): Simulation parameters. "cutoff_radius"
                and "max_speed" are required.
            rng (np.random.Generator): Generator kept for later matrix
                randomization. A fresh one is created if omitted.
        """
        self.particles = particles
        self.matrix = matrix
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng()

        self.cutoff_radius = float(params['cutoff_radius'])
        self.cutoff_sq = self.cutoff_radius ** 2
        self.max_speed = float(params['max_speed'])
        self.epsilon = float(params.get('epsilon', DEFAULT_EPSILON))
        self.use_spatial_grid = bool(params.get('use_spatial_grid', False))
        self.parallel = bool(params.get('parallel', False))
        self.step_count = 0

        if matrix.num_classes != particles.num_classes:
            msg = (
                f"Configuration error: Interaction matrix shape {matrix.shape} "
                f"does not match the number of particle classes ({particles.num_classes})."
            )
            logging.critical(msg)
            raise ValueError(msg)

        logging.info("Simulation logic initialized and configuration validated.")
        if self.use_spatial_grid:
            logging.info(f"Spatial grid enabled, cell size {self.cutoff_radius:.2f}.")
        if self.parallel:
            logging.info("Parallel force computation enabled.")

    @property
    def interaction_matrix(self) -> np.ndarray:
        return self.matrix.values

    def randomize_interaction_matrix(self) -> None:
        self.matrix.randomize(self.rng)

    def compute_accelerations(self) -> np.ndarray:
        """
        Computes the acceleration of every particle from the current positions.

        Returns:
            np.ndarray: Array of shape (N, 2). Nothing is written to the
            particle state.
        """
        positions = self.particles.positions
        args = (
            positions, self.particles.classes, self.particles.masses,
            self.matrix.values.copy(), self.cutoff_sq, self.epsilon,
        )

        if self.use_spatial_grid:
            cell_size = self.cutoff_radius * (1.0 + GRID_CELL_PADDING)
            grid = _build_grid(positions, cell_size)
            if grid is not None:
                kernel = _grid_accelerations_parallel if self.parallel else _grid_accelerations_numba
                return kernel(*args, *grid)
            logging.debug("Particles too spread out for the spatial grid; using the pairwise kernel.")
        if self.parallel:
            return _pairwise_accelerations_parallel(*args)
        return _pairwise_accelerations_numba(*args)

    def step(self, bounds) -> None:
        """
        Executes one time step of the simulation.

        Args:
            bounds: Viewport bounds for this tick.
        """
        bounds = Bounds.coerce(bounds)

        # 1. Move everything with last tick's velocities.
        self.particles.translate(bounds)

        # 2. All reads happen before any velocity is written.
        accelerations = self.compute_accelerations()

        # 3. Apply accelerations and cap speeds.
        self.particles.apply_accelerations(accelerations, self.max_speed)

        self.step_count += 1


def initialize(params: Dict[str, Any]) -> Simulation:
    """
    Builds a Simulation from the simulation parameters.

    The matrix is drawn first and the particles second, from a single
    generator seeded with params["seed"].
    """
    params = validate_simulation_params(params)
    rng = np.random.default_rng(params['seed'])

    if params['interaction_matrix'] is not None:
        matrix = InteractionMatrix(params['interaction_matrix'], params['gravity_mag_max'])
        logging.info("Using interaction matrix from configuration.")
    else:
        matrix = InteractionMatrix.generate(params['num_classes'], params['gravity_mag_max'], rng)

    particles = ParticleSystem.create(
        params['num_classes'],
        params['particles_per_class'],
        params['initial_position_bounds'],
        params['mass_range'],
        rng,
    )
    return Simulation(particles, matrix, params, rng)


def step(state: Simulation, bounds) -> None:
    """Advances `state` by one tick inside `bounds`."""
    state.step(bounds)
