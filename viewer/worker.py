# viewer/worker.py

import logging
import os

# The generation core has no GUI dependencies, so worker processes can import it.
from wfc_terrain.generator import GenerationConfig, TerrainGenerator


def run_generation_job(args: dict) -> tuple:
    """
    A top-level, pickle-able function designed to be run in a worker process.
    It generates one complete grid and returns its tile map.
    THIS FILE MUST NOT IMPORT PYGAME OR PYGAME_GUI.

    Args:
        args (dict): 'generation_id' (int) and 'generation_parameters' (dict).

    Returns:
        tuple: (generation_id, tile_map, summary). On failure the tile map and
        summary are None, so a partial grid never reaches the caller.
    """
    worker_logger = logging.getLogger(f"Worker-{os.getpid()}")
    generation_id = args['generation_id']
    try:
        config = GenerationConfig.from_dict(args['generation_parameters'])
        grid = TerrainGenerator(config=config, logger=worker_logger).generate()
        return (generation_id, grid.tile_map(), grid.summary())
    except Exception as e:
        worker_logger.critical(f"WORKER: Generation {generation_id} failed: {e}", exc_info=True)
        return (generation_id, None, None)
