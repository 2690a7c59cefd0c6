# config.py
"""
Simulation parameter defaults and validation.

Configuration is validated once, before any simulation state is built, so
that a bad config.json fails fast instead of corrupting the main loop.
"""
import copy
import logging
import math
import numpy as np
from typing import Any, Dict

from constants import DEFAULT_EPSILON
from particle import Bounds

# --- Data Contracts ---
#
# validate_simulation_params(params: Dict[str, Any]) -> Dict[str, Any]:
#   - Inputs:
#     - params: The "simulation_parameters" section of config.json. Missing
#       keys fall back to DEFAULT_SIMULATION_PARAMS.
#   - Outputs: A new dictionary with every recognised key filled in.
#     "initial_position_bounds" is converted to a Bounds instance and
#     "mass_range" to a (min, max) tuple.
#   - Side Effects: Logs unknown keys as warnings. Logs at CRITICAL and
#     raises ValueError on the first invalid value.

DEFAULT_SIMULATION_PARAMS: Dict[str, Any] = {
    "seed": None,
    "num_classes": 5,
    "particles_per_class": 500,
    "cutoff_radius": 200.0,
    "gravity_mag_max": 0.1,
    "max_speed": 2.0,
    "mass_range": [100.0, 100.0],
    "initial_position_bounds": {"left": -100.0, "right": 100.0, "bottom": -100.0, "top": 100.0},
    "epsilon": DEFAULT_EPSILON,
    "interaction_matrix": None,
    "use_spatial_grid": False,
    "parallel": False,
}


def _fail(msg: str) -> None:
    msg = f"Configuration error: {msg}"
    logging.critical(msg)
    raise ValueError(msg)


def _positive_int(params: Dict[str, Any], key: str) -> int:
    value = params[key]
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
        _fail(f"'{key}' must be a positive integer, got {value!r}.")
    return int(value)


def _real(params: Dict[str, Any], key: str, minimum: float, inclusive: bool = True) -> float:
    value = params[key]
    try:
        value = float(value)
    except (TypeError, ValueError):
        _fail(f"'{key}' must be a number, got {value!r}.")
    if not math.isfinite(value):
        _fail(f"'{key}' must be finite, got {value!r}.")
    if value < minimum or (not inclusive and value == minimum):
        relation = ">=" if inclusive else ">"
        _fail(f"'{key}' must be {relation} {minimum}, got {value!r}.")
    return value


def validate_simulation_params(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fills in defaults and validates the simulation parameters.

    Args:
        params (Dict[str, Any]): Raw simulation parameters.

    Returns:
        Dict[str, Any]: The completed, validated parameters.
    """
    unknown = sorted(set(params) - set(DEFAULT_SIMULATION_PARAMS))
    for key in unknown:
        logging.warning(f"Ignoring unknown simulation parameter '{key}'.")

    merged = copy.deepcopy(DEFAULT_SIMULATION_PARAMS)
    merged.update({k: v for k, v in params.items() if k in DEFAULT_SIMULATION_PARAMS})

    seed = merged["seed"]
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) or seed < 0):
        _fail(f"'seed' must be a non-negative integer or null, got {seed!r}.")

    num_classes = _positive_int(merged, "num_classes")
    merged["num_classes"] = num_classes
    merged["particles_per_class"] = _positive_int(merged, "particles_per_class")
    merged["cutoff_radius"] = _real(merged, "cutoff_radius", 0.0, inclusive=False)
    merged["gravity_mag_max"] = _real(merged, "gravity_mag_max", 0.0)
    merged["max_speed"] = _real(merged, "max_speed", 0.0)
    merged["epsilon"] = _real(merged, "epsilon", 0.0, inclusive=False)

    mass_range = merged["mass_range"]
    try:
        min_mass, max_mass = (float(m) for m in mass_range)
    except (TypeError, ValueError):
        _fail(f"'mass_range' must be a [min, max] pair, got {mass_range!r}.")
    if not (math.isfinite(min_mass) and math.isfinite(max_mass)):
        _fail(f"'mass_range' must be finite, got {mass_range!r}.")
    if min_mass < 0:
        _fail(f"'mass_range' minimum must be >= 0, got {min_mass}.")
    if max_mass < min_mass:
        _fail(f"'mass_range' maximum ({max_mass}) is smaller than its minimum ({min_mass}).")
    merged["mass_range"] = (min_mass, max_mass)

    try:
        merged["initial_position_bounds"] = Bounds.coerce(merged["initial_position_bounds"])
    except (KeyError, TypeError, ValueError) as e:
        _fail(f"'initial_position_bounds' is invalid: {e}")

    matrix = merged["interaction_matrix"]
    if matrix is not None:
        try:
            values = np.array(matrix, dtype=np.float64)
        except (TypeError, ValueError) as e:
            _fail(f"'interaction_matrix' is not numeric: {e}")
        if values.shape != (num_classes, num_classes):
            _fail(
                f"Interaction matrix shape {values.shape} does not match "
                f"num_classes ({num_classes}). The matrix must be square "
                f"and its dimensions must equal the number of classes."
            )
        mag_max = merged["gravity_mag_max"]
        if not np.all(np.isfinite(values)) or np.any(np.abs(values) > mag_max):
            _fail(f"Interaction matrix coefficients must lie in [-{mag_max}, {mag_max}].")
        merged["interaction_matrix"] = values

    merged["use_spatial_grid"] = bool(merged["use_spatial_grid"])
    merged["parallel"] = bool(merged["parallel"])

    logging.debug(f"Simulation parameters validated: {merged}")
    return merged
