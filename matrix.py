# matrix.py
"""
The class-to-class interaction matrix.

Each cell holds the signed coefficient a particle of the row class feels
from a particle of the column class. Positive values attract, negative
values repel. The matrix is deliberately not symmetric.
"""
import logging
import numpy as np
from typing import Sequence, Union

# --- Data Contracts ---
#
# class InteractionMatrix:
#   - generate(num_classes: int, mag_max: float, rng: np.random.Generator)
#     -> InteractionMatrix
#     - Every cell sampled independently and uniformly from [-mag_max, mag_max].
#   - get(row_class: int, col_class: int) -> float
#     - Pure lookup.
#   - set / randomize / reset
#     - Interactive tuning. Values are always kept in [-mag_max, mag_max].
#   - Invariants:
#     - self.values has shape (num_classes, num_classes), dtype float64.
#     - The dimensions never change after construction.


class InteractionMatrix:
    """
    Square mapping from (class, class) pairs to interaction coefficients.
    """
    def __init__(self, values: Union[np.ndarray, Sequence[Sequence[float]]], mag_max: float):
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise ValueError(f"Interaction matrix must be square, got shape {values.shape}.")
        self.mag_max = float(mag_max)
        self._values = values

    @classmethod
    def generate(cls, num_classes: int, mag_max: float, rng: np.random.Generator) -> "InteractionMatrix":
        """
        Builds a random matrix with every cell drawn from [-mag_max, mag_max].

        Args:
            num_classes (int): Number of particle classes (rows and columns).
            mag_max (float): Largest absolute coefficient.
            rng (np.random.Generator): Source of randomness.
        """
        values = rng.uniform(-mag_max, mag_max, size=(num_classes, num_classes))
        matrix = cls(values, mag_max)
        logging.info(f"Interaction matrix generated for {num_classes} classes.")
        logging.info(f"Interaction matrix:\n{np.array2string(matrix._values, precision=4)}")
        return matrix

    @property
    def num_classes(self) -> int:
        return self._values.shape[0]

    @property
    def shape(self):
        return self._values.shape

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the coefficients."""
        view = self._values.view()
        view.flags.writeable = False
        return view

    def get(self, row_class: int, col_class: int) -> float:
        """Coefficient applied to a `row_class` particle by a `col_class` particle."""
        return float(self._values[row_class, col_class])

    def set(self, row_class: int, col_class: int, value: float) -> float:
        """Stores a coefficient clipped to the allowed range and returns it."""
        clipped = float(np.clip(value, -self.mag_max, self.mag_max))
        self._values[row_class, col_class] = clipped
        return clipped

    def randomize(self, rng: np.random.Generator) -> None:
        self._values[:] = rng.uniform(-self.mag_max, self.mag_max, size=self._values.shape)
        logging.info("Interaction matrix randomized.")

    def reset(self) -> None:
        self._values.fill(0.0)
        logging.info("Interaction matrix reset to all zeros.")

    def __repr__(self) -> str:
        return f"InteractionMatrix(num_classes={self.num_classes}, mag_max={self.mag_max})"
