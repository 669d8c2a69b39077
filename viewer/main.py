# viewer/main.py

import sys
import os
import json
import logging
import logging.config
import multiprocessing
from dataclasses import replace

import numpy as np
from PIL import Image
import pygame
import pygame_gui

from wfc_terrain import color_maps
from wfc_terrain.generator import GenerationConfig
from wfc_terrain.tiles import DEFAULT_CATALOG
from viewer.renderer import MapRenderer
from viewer.worker import run_generation_job

# --- UI Constants (Rule 1) ---
UI_PANEL_WIDTH = 320
UI_ELEMENT_HEIGHT = 25
UI_PADDING = 10
UI_BUTTON_HEIGHT = 40

# --- Application Paths ---
CONFIG_PATH = 'viewer/config.json'
LOGGING_CONFIG_PATH = 'viewer/logging_config.json'
LOG_DIR = 'logs'
SCREENSHOT_DIR = 'screenshots'


class EditorState:
    """The interactive map editor: parameter inputs, generation and preview."""

    def __init__(self, app):
        # --- Core Application References ---
        self.app = app
        self.logger = app.logger
        self.screen = app.screen

        self.logger.info("EditorState starting.")

        # --- 1. Initial Parameters ---
        self.generation_params = dict(self.app.config.get('generation_parameters', {}))
        self.config = GenerationConfig.from_dict(self.generation_params)
        self.renderer = MapRenderer(logger=self.logger, catalog=DEFAULT_CATALOG)

        # --- 2. Map State ---
        self.tile_map = None
        self.map_surface = None
        self.last_summary = None

        # --- 3. Background Generation State ---
        # Each request gets a new id. Only a result carrying the latest id is
        # displayed; anything older belongs to an abandoned run.
        self.generation_pool = multiprocessing.Pool(processes=1)
        self.pending_results = []
        self.latest_generation_id = 0

        # --- 4. UI ---
        self.ui_manager = None
        self.grid_size_input = None
        self.noise_scale_input = None
        self.tile_resolution_input = None
        self.seed_input = None
        self.generate_button = None
        self.save_button = None
        self.status_label = None
        self._setup_ui()

        self.is_running = True
        self._request_generation()

    def _setup_ui(self):
        """Initializes the pygame_gui manager and creates the UI layout."""
        self.ui_manager = pygame_gui.UIManager((self.app.screen_width, self.app.screen_height))
        self.logger.info("UI Manager initialized.")

        panel_x = self.app.screen_width - UI_PANEL_WIDTH
        self.ui_panel = pygame_gui.elements.UIPanel(
            relative_rect=pygame.Rect(panel_x, 0, UI_PANEL_WIDTH, self.app.screen_height),
            manager=self.ui_manager
        )
        element_width = UI_PANEL_WIDTH - (UI_PADDING * 2)
        current_y = UI_PADDING

        def add_labeled_input(label_text, initial_value):
            nonlocal current_y
            pygame_gui.elements.UILabel(
                relative_rect=pygame.Rect(UI_PADDING, current_y, element_width, UI_ELEMENT_HEIGHT),
                text=label_text,
                manager=self.ui_manager,
                container=self.ui_panel
            )
            current_y += UI_ELEMENT_HEIGHT
            entry = pygame_gui.elements.UITextEntryLine(
                relative_rect=pygame.Rect(UI_PADDING, current_y, element_width, UI_ELEMENT_HEIGHT),
                manager=self.ui_manager,
                container=self.ui_panel
            )
            entry.set_text(initial_value)
            current_y += UI_ELEMENT_HEIGHT + UI_PADDING
            return entry

        self.grid_size_input = add_labeled_input("Grid Size (tiles per side)", str(self.config.grid_size))
        self.noise_scale_input = add_labeled_input("Noise Scale", str(self.config.noise_scale))
        self.tile_resolution_input = add_labeled_input("Tile Resolution (pixels)", str(self.config.tile_resolution))
        seed_text = "" if self.config.seed is None else str(self.config.seed)
        self.seed_input = add_labeled_input("Seed (blank = random)", seed_text)

        self.generate_button = pygame_gui.elements.UIButton(
            relative_rect=pygame.Rect(UI_PADDING, current_y, element_width, UI_BUTTON_HEIGHT),
            text="Generate",
            manager=self.ui_manager,
            container=self.ui_panel
        )
        current_y += UI_BUTTON_HEIGHT + UI_PADDING

        self.save_button = pygame_gui.elements.UIButton(
            relative_rect=pygame.Rect(UI_PADDING, current_y, element_width, UI_BUTTON_HEIGHT),
            text="Save PNG",
            manager=self.ui_manager,
            container=self.ui_panel
        )
        current_y += UI_BUTTON_HEIGHT + UI_PADDING

        self.status_label = pygame_gui.elements.UILabel(
            relative_rect=pygame.Rect(UI_PADDING, current_y, element_width, UI_ELEMENT_HEIGHT),
            text="",
            manager=self.ui_manager,
            container=self.ui_panel
        )

    def handle_events(self, events):
        """Processes user input and other events for this state."""
        for event in events:
            # Pass events to the UI Manager first
            self.ui_manager.process_events(event)

            if event.type == pygame.QUIT:
                self.is_running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                self.logger.info("Event: ESC key pressed. Exiting.")
                self.is_running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_r and not self._text_input_focused():
                self.logger.info("Event: 'R' pressed. Regenerating.")
                self._request_generation()

            if event.type == pygame_gui.UI_BUTTON_PRESSED:
                if event.ui_element == self.generate_button:
                    self._apply_parameter_changes()
                elif event.ui_element == self.save_button:
                    self._save_png()

    def _text_input_focused(self) -> bool:
        inputs = (self.grid_size_input, self.noise_scale_input, self.tile_resolution_input, self.seed_input)
        return any(entry.is_focused for entry in inputs)

    def _apply_parameter_changes(self):
        """
        Parses the text inputs into a new GenerationConfig and, if valid,
        starts a fresh generation run.
        """
        try:
            grid_size = int(self.grid_size_input.get_text())
            noise_scale = float(self.noise_scale_input.get_text())
            tile_resolution = int(self.tile_resolution_input.get_text())
            seed_text = self.seed_input.get_text().strip()
            seed = int(seed_text) if seed_text else None

            if grid_size < 1:
                self.logger.warning(f"Grid size {grid_size} is below 1. Clamping to 1.")
                grid_size = 1
                self.grid_size_input.set_text("1")

            params = dict(self.generation_params)
            params.update({
                'grid_size': grid_size,
                'noise_scale': noise_scale,
                'tile_resolution': tile_resolution,
                'seed': seed,
            })
            new_config = GenerationConfig.from_dict(params)
        except ValueError as e:
            self.logger.error(f"Invalid parameter input: {e}")
            # Reset the text to the current valid values
            self.grid_size_input.set_text(str(self.config.grid_size))
            self.noise_scale_input.set_text(str(self.config.noise_scale))
            self.tile_resolution_input.set_text(str(self.config.tile_resolution))
            self.seed_input.set_text("" if self.config.seed is None else str(self.config.seed))
            return

        # The generator never reads tile_resolution, so a change to it alone
        # only needs a re-render of the map already on screen.
        only_resolution_changed = (
            self.tile_map is not None
            and new_config.tile_resolution != self.config.tile_resolution
            and replace(new_config, tile_resolution=self.config.tile_resolution) == self.config
        )
        self.generation_params = params
        self.config = new_config

        if only_resolution_changed:
            self.logger.info(f"Tile resolution changed to {new_config.tile_resolution}. Re-rendering.")
            self.map_surface = self.renderer.create_surface_from_tile_map(self.tile_map, new_config.tile_resolution)
        else:
            self._request_generation()

    def _request_generation(self):
        """Queues a generation run in the background worker."""
        self.latest_generation_id += 1
        args = {
            'generation_id': self.latest_generation_id,
            'generation_parameters': self.config.to_dict(),
        }
        self.logger.info(f"Requesting generation {self.latest_generation_id} with {args['generation_parameters']}")
        self.pending_results.append(self.generation_pool.apply_async(run_generation_job, (args,)))
        self.status_label.set_text(f"Generating {self.config.grid_size}x{self.config.grid_size}...")

    def _collect_results(self):
        """Picks up finished runs, keeping only the most recent request."""
        still_pending = []
        for result in self.pending_results:
            if not result.ready():
                still_pending.append(result)
                continue

            generation_id, tile_map, summary = result.get()
            if generation_id != self.latest_generation_id:
                self.logger.debug(f"Discarding stale generation {generation_id}.")
                continue
            if tile_map is None:
                self.status_label.set_text("Generation failed. See log.")
                continue

            self.tile_map = tile_map
            self.last_summary = summary
            self.map_surface = self.renderer.create_surface_from_tile_map(tile_map, self.config.tile_resolution)
            self.status_label.set_text(
                f"{summary['determined']} set, {summary['infeasible']} empty, {summary['underdetermined']} mixed"
            )
            self.logger.info(f"Generation {generation_id} displayed: {summary}")
        self.pending_results = still_pending

    def _save_png(self):
        """Writes the displayed map to the screenshots directory."""
        if self.tile_map is None:
            self.logger.warning("Nothing to save yet.")
            return

        os.makedirs(SCREENSHOT_DIR, exist_ok=True)
        color_array = color_maps.get_tile_color_array(self.tile_map, self.renderer.tile_lut)
        color_array = color_maps.upscale_color_array(color_array, self.config.tile_resolution)
        # Pillow expects (H, W, C).
        img = Image.fromarray(np.ascontiguousarray(np.transpose(color_array, (1, 0, 2))), 'RGB')
        filename = os.path.join(SCREENSHOT_DIR, f"map_{self.latest_generation_id}.png")
        img.save(filename, optimize=True)
        self.logger.info(f"Saved map to '{filename}'.")
        self.status_label.set_text(f"Saved {filename}")

    def update(self, time_delta):
        """Update state logic. Returns a signal for the application loop."""
        self._collect_results()
        self.ui_manager.update(time_delta)
        if not self.is_running:
            return ("QUIT", None)
        return None

    def draw(self, screen):
        """Renders the scene for this state."""
        area_width = self.app.screen_width - UI_PANEL_WIDTH
        self.renderer.draw_map(screen, self.map_surface, area_width)
        self.ui_manager.draw_ui(screen)

    def shutdown(self):
        self.generation_pool.terminate()
        self.generation_pool.join()


class Application:
    """The main application class, responsible for the main loop."""

    def __init__(self):
        self._setup_logging()
        self.logger.info("Application starting.")
        self.config = self._load_config()
        self._setup_pygame()
        self.active_state = EditorState(self)
        self.is_running = True

    def _setup_logging(self):
        """Initializes the logging system from a config file."""
        if not os.path.exists(LOG_DIR):
            os.makedirs(LOG_DIR)
        with open(LOGGING_CONFIG_PATH, 'rt') as f:
            log_config = json.load(f)
        log_config['handlers']['file']['filename'] = os.path.join(LOG_DIR, 'viewer.log')
        logging.config.dictConfig(log_config)
        self.logger = logging.getLogger(__name__)

    def _load_config(self) -> dict:
        """Loads display and generation parameters from the config file."""
        self.logger.info(f"Loading configuration from {CONFIG_PATH}")
        try:
            with open(CONFIG_PATH, 'r') as f:
                return json.load(f)
        except FileNotFoundError:
            self.logger.critical(f"Configuration file not found at {CONFIG_PATH}. Exiting.")
            sys.exit(1)
        except json.JSONDecodeError:
            self.logger.critical(f"Error decoding JSON from {CONFIG_PATH}. Exiting.")
            sys.exit(1)

    def _setup_pygame(self):
        """Initializes Pygame and the display window."""
        pygame.init()
        display_config = self.config['display']
        self.screen_width = display_config['screen_width']
        self.screen_height = display_config['screen_height']

        if display_config.get('fullscreen', False):
            self.logger.info("Initializing display in Fullscreen mode.")
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
            self.screen_width, self.screen_height = self.screen.get_size()
        else:
            self.logger.info(f"Initializing display in Windowed mode ({self.screen_width}x{self.screen_height}).")
            self.screen = pygame.display.set_mode((self.screen_width, self.screen_height))

        pygame.display.set_caption("WFC Terrain Generator")
        self.clock = pygame.time.Clock()
        self.tick_rate = display_config['clock_tick_rate']
        self.logger.info("Pygame initialized successfully.")

    def run(self):
        """The main application loop."""
        try:
            while self.is_running:
                time_delta = self.clock.tick(self.tick_rate) / 1000.0

                events = pygame.event.get()
                self.active_state.handle_events(events)

                signal = self.active_state.update(time_delta)
                if signal and signal[0] == "QUIT":
                    self.is_running = False

                self.active_state.draw(self.screen)
                pygame.display.flip()

        except Exception:
            self.logger.critical("An unhandled exception occurred in the main loop!", exc_info=True)
        finally:
            self.logger.info("Exiting application.")
            self.active_state.shutdown()
            pygame.quit()
            sys.exit()


if __name__ == '__main__':
    # Required for multiprocessing to work correctly when the app is frozen
    multiprocessing.freeze_support()
    app = Application()
    app.run()
