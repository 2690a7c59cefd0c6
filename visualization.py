# visualization.py
"""
Handles the visualization of the particle simulation using Pygame.

The visualizer is the host side of the simulation: it owns the window,
decides the viewport bounds handed to every tick, and draws the particles.
World coordinates are centred on the simulation area with y pointing up.
"""
import logging
import pygame
import numpy as np
from typing import Any, Dict, List, Optional, Tuple

from constants import (
    BACKGROUND_COLOR, CLASS_COLORS, DEFAULT_WINDOW_HEIGHT, DEFAULT_WINDOW_WIDTH,
    FPS, PARTICLE_ALPHA, UI_BACKGROUND_ALPHA, UI_PANEL_WIDTH
)
from particle import Bounds

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from simulation import Simulation


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, num_classes: int, vis_params: Optional[dict] = None,
#              sim_params: Optional[dict] = None):
#     - Inputs:
#       - num_classes: int, the number of particle classes.
#       - vis_params: The "visualization" section of config.json
#         ("window_width", "window_height", "fps", "particle_colors").
#       - sim_params: Validated simulation parameters, shown in the UI panel.
#     - Side Effects: Initializes Pygame and creates a resizable window.
#
#   - bounds -> Bounds
#     - The current simulation area in world coordinates. Re-read every
#       frame, since the window can be resized.
#
#   - draw(self, simulation: "Simulation") -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: Renders particles and UI, handles Pygame events, and
#       can modify the simulation's interaction matrix based on user input.

class Visualizer:
    """
    Renders the particle system state and provides interactive UI elements.
    """
    def __init__(self, num_classes: int, vis_params: Optional[dict] = None, sim_params: Optional[dict] = None):
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()
        pygame.font.init()

        width = int(vis_params.get('window_width', DEFAULT_WINDOW_WIDTH))
        height = int(vis_params.get('window_height', DEFAULT_WINDOW_HEIGHT))
        self.fps = int(vis_params.get('fps', FPS))
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        pygame.display.set_caption("Particle Life")
        self.clock = pygame.time.Clock()
        self._resize(width, height)

        self.colors = self._initialize_colors(num_classes, vis_params.get('particle_colors'))

        self.font_main = pygame.font.SysFont(None, 18)
        self.font_small = pygame.font.SysFont(None, 16)

        self.label_margin = 20
        self.cell_size = min(40, (UI_PANEL_WIDTH - 60) // max(num_classes, 1))
        self.cell_padding = 2
        self.label_circle_radius = max(3, min(8, self.cell_size // 4))
        self.hovered_cell: Optional[Tuple[int, int]] = None
        self.scroll_fraction = 0.05

        self.button_color = (80, 80, 80)
        self.button_hover_color = (110, 110, 110)
        self.text_color = (255, 255, 255)
        self.text_color_key = (200, 200, 200)

        self.sim_params = sim_params if sim_params is not None else {}
        self._layout_panel(num_classes)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _resize(self, width: int, height: int) -> None:
        self.sim_width = max(width - UI_PANEL_WIDTH, 1)
        self.sim_height = max(height, 1)
        self.particle_layer = pygame.Surface((self.sim_width, self.sim_height), pygame.SRCALPHA)
        self.ui_panel_surface = pygame.Surface((UI_PANEL_WIDTH, self.sim_height), pygame.SRCALPHA)
        self.ui_panel_surface.fill((40, 40, 40, UI_BACKGROUND_ALPHA))

    def _layout_panel(self, num_classes: int) -> None:
        self.matrix_pos = (self.sim_width + 30, 10 + self.label_margin)
        matrix_pixels = num_classes * (self.cell_size + self.cell_padding) - self.cell_padding
        button_y = self.matrix_pos[1] + matrix_pixels + 10
        self.reset_button_rect = pygame.Rect(self.matrix_pos[0], button_y, matrix_pixels, 26)
        self.randomize_button_rect = pygame.Rect(
            self.matrix_pos[0], self.reset_button_rect.bottom + 5, matrix_pixels, 26
        )

    @property
    def bounds(self) -> Bounds:
        half_w = self.sim_width / 2.0
        half_h = self.sim_height / 2.0
        return Bounds(-half_w, half_w, -half_h, half_h)

    def _initialize_colors(self, num_classes: int, config_colors: Optional[list]) -> List[pygame.Color]:
        """Colors from config, topped up from the default palette and then generated ones."""
        def default_color(i: int) -> pygame.Color:
            if i < len(CLASS_COLORS):
                return pygame.Color(CLASS_COLORS[i])
            return pygame.Color((i * 97) % 256, (i * 157) % 256, (i * 211) % 256)

        colors: List[pygame.Color] = []
        if config_colors:
            try:
                colors = [pygame.Color(rgb) for rgb in config_colors][:num_classes]
            except (ValueError, TypeError) as e:
                logging.error(f"Could not parse colors from config: {e}. Using default palette.")
                colors = []

        if len(colors) < num_classes:
            if config_colors:
                logging.warning(
                    f"Config provides {len(colors)} usable colors, but {num_classes} are needed."
                )
            colors.extend(default_color(i) for i in range(len(colors), num_classes))
        return colors

    def world_to_screen(self, positions: np.ndarray) -> np.ndarray:
        """Maps world coordinates (origin at centre, y up) to sim-area pixels."""
        screen = np.empty_like(positions)
        screen[:, 0] = positions[:, 0] + self.sim_width / 2.0
        screen[:, 1] = self.sim_height / 2.0 - positions[:, 1]
        return screen

    def _get_matrix_cell_from_pos(self, pos: Tuple[int, int], num_classes: int) -> Optional[Tuple[int, int]]:
        stride = self.cell_size + self.cell_padding
        col = (pos[0] - self.matrix_pos[0]) // stride
        row = (pos[1] - self.matrix_pos[1]) // stride
        if 0 <= row < num_classes and 0 <= col < num_classes:
            return (int(row), int(col))
        return None

    def _cell_rect(self, row: int, col: int) -> pygame.Rect:
        stride = self.cell_size + self.cell_padding
        return pygame.Rect(
            self.matrix_pos[0] + col * stride, self.matrix_pos[1] + row * stride,
            self.cell_size, self.cell_size
        )

    def _draw_interaction_matrix(self, simulation: "Simulation") -> None:
        """Renders the matrix: green attracts, red repels, brighter is stronger."""
        values = simulation.interaction_matrix
        num_classes = values.shape[0]
        mag_max = simulation.matrix.mag_max
        stride = self.cell_size + self.cell_padding

        for i in range(num_classes):
            center = self.matrix_pos[1] + i * stride + self.cell_size / 2
            pygame.draw.circle(
                self.screen, self.colors[i],
                (self.matrix_pos[0] - self.label_margin / 2, center), self.label_circle_radius
            )
            center = self.matrix_pos[0] + i * stride + self.cell_size / 2
            pygame.draw.circle(
                self.screen, self.colors[i],
                (center, self.matrix_pos[1] - self.label_margin / 2), self.label_circle_radius
            )

        for r in range(num_classes):
            for c in range(num_classes):
                value = values[r, c]
                intensity = int(200 * abs(value) / mag_max) if mag_max > 0 else 0
                if value > 0:
                    bg_color = (0, intensity, 0)
                elif value < 0:
                    bg_color = (intensity, 0, 0)
                else:
                    bg_color = (50, 50, 50)

                cell_rect = self._cell_rect(r, c)
                pygame.draw.rect(self.screen, bg_color, cell_rect)
                if self.hovered_cell == (r, c):
                    pygame.draw.rect(self.screen, (255, 255, 0), cell_rect, 2)

                if self.cell_size >= 30:
                    text_surf = self.font_small.render(f"{value:.2f}", True, self.text_color)
                    self.screen.blit(text_surf, text_surf.get_rect(center=cell_rect.center))

    def _draw_button(self, rect: pygame.Rect, label: str, mouse_pos: Tuple[int, int]) -> None:
        color = self.button_hover_color if rect.collidepoint(mouse_pos) else self.button_color
        pygame.draw.rect(self.screen, color, rect, border_radius=5)
        text_surf = self.font_main.render(label, True, self.text_color)
        self.screen.blit(text_surf, text_surf.get_rect(center=rect.center))

    def _draw_simulation_parameters(self, simulation: "Simulation") -> None:
        """Lists the simulation parameters below the buttons."""
        entries: List[Tuple[str, Any]] = [("Step", simulation.step_count), ("FPS", f"{self.clock.get_fps():.1f}")]
        for key, value in self.sim_params.items():
            if key == "interaction_matrix":
                continue
            if isinstance(value, float):
                value = f"{value:.2f}"
            elif isinstance(value, tuple):
                value = ", ".join(f"{v:g}" for v in value)
            entries.append((key.replace('_', ' ').title(), value))

        line_height = self.font_main.get_linesize()
        x = self.matrix_pos[0]
        y = self.randomize_button_rect.bottom + 20
        for key, value in entries:
            key_surf = self.font_main.render(f"{key}:", True, self.text_color_key)
            value_surf = self.font_main.render(str(value), True, self.text_color)
            self.screen.blit(key_surf, (x, y))
            self.screen.blit(value_surf, (x + 140, y))
            y += line_height + 2

    def _handle_events(self, simulation: "Simulation", mouse_pos: Tuple[int, int]) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

            if event.type == pygame.VIDEORESIZE:
                self._resize(event.w, event.h)
                self._layout_panel(simulation.matrix.num_classes)
                logging.info(f"Window resized to {event.w}x{event.h}.")

            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self.reset_button_rect.collidepoint(mouse_pos):
                    simulation.matrix.reset()
                elif self.randomize_button_rect.collidepoint(mouse_pos):
                    simulation.randomize_interaction_matrix()

            if event.type == pygame.MOUSEWHEEL and self.hovered_cell:
                r, c = self.hovered_cell
                old_value = simulation.matrix.get(r, c)
                change = event.y * self.scroll_fraction * simulation.matrix.mag_max
                new_value = simulation.matrix.set(r, c, old_value + change)
                logging.info(
                    f"Interaction matrix updated at ({r}, {c}). "
                    f"Old: {old_value:.3f}, New: {new_value:.3f}"
                )
        return True

    def draw(self, simulation: "Simulation") -> bool:
        """
        Draws all particles and UI, and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        mouse_pos = pygame.mouse.get_pos()
        num_classes = simulation.matrix.num_classes
        self.hovered_cell = self._get_matrix_cell_from_pos(mouse_pos, num_classes)

        if not self._handle_events(simulation, mouse_pos):
            return False

        self.screen.fill(BACKGROUND_COLOR)
        self.particle_layer.fill((0, 0, 0, 0))

        particles = simulation.particles
        screen_positions = self.world_to_screen(particles.positions)
        radii = np.maximum(particles.sizes / 2.0, 1.0)
        for pos, radius, class_id in zip(screen_positions, radii, particles.classes):
            color = self.colors[class_id]
            pygame.draw.circle(
                self.particle_layer,
                (color.r, color.g, color.b, PARTICLE_ALPHA),
                (int(pos[0]), int(pos[1])),
                int(radius)
            )
        self.screen.blit(self.particle_layer, (0, 0))

        self.screen.blit(self.ui_panel_surface, (self.sim_width, 0))
        self._draw_interaction_matrix(simulation)
        self._draw_button(self.reset_button_rect, "Reset", mouse_pos)
        self._draw_button(self.randomize_button_rect, "Randomize", mouse_pos)
        self._draw_simulation_parameters(simulation)

        pygame.display.flip()
        self.clock.tick(self.fps)
        return True

    def close(self) -> None:
        """Shuts down Pygame."""
        pygame.quit()
