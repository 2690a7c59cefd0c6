# constants.py
"""
Application-level constants.

These values are static and do not change between simulation runs.
They are fundamental to the application's framework, such as rendering
properties, default window sizes, or core physics settings that are not
part of the experimental configuration.
"""

# Physics settings
# Floor applied to the squared distance before dividing, so that
# near-coincident particles do not produce unbounded accelerations.
DEFAULT_EPSILON = 0.1

# The spatial grid pads its cell size by this relative amount so that pairs
# sitting exactly at the cutoff radius still land in adjacent cells.
GRID_CELL_PADDING = 1e-9

# Visualization settings
DEFAULT_WINDOW_WIDTH = 1400
DEFAULT_WINDOW_HEIGHT = 800
UI_PANEL_WIDTH = 300
FPS = 60
BACKGROUND_COLOR = (0, 0, 0)
PARTICLE_ALPHA = 200
UI_BACKGROUND_ALPHA = 100

# Default class colors, used if the config file does not provide a color list.
CLASS_COLORS = [
    (255, 0, 0),     # Red
    (0, 128, 0),     # Green
    (0, 0, 255),     # Blue
    (255, 165, 0),   # Orange
    (255, 255, 0),   # Yellow
]

# Upper limit on grid cells per axis. Keeps cell keys (x * height + y)
# inside int64; wider spreads fall back to the pairwise kernel.
MAX_GRID_SPAN = 2 ** 31
