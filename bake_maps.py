# bake_maps.py

"""
================================================================================
OFFLINE MAP BAKER SCRIPT
================================================================================
This script is a command-line tool for generating a batch of terrain maps
and saving them as PNG images ("baking"), together with a manifest and the
generation config that produced them.

Usage:
    python bake_maps.py --config path/to/your/config.json --count 10
================================================================================
"""
import os
import sys
import json
import logging
import argparse
import time
import hashlib
import collections
import multiprocessing
from dataclasses import replace

import numpy as np
from PIL import Image
from tqdm import tqdm

from wfc_terrain import color_maps
from wfc_terrain.generator import GenerationConfig, TerrainGenerator
from wfc_terrain.tiles import DEFAULT_CATALOG

DEFAULT_OUTPUT_DIR = "baked_maps"


# --- Helper for Tiered Image Compression ---
def save_map_image(tile_map: np.ndarray, tile_lut: np.ndarray, tile_resolution: int,
                   directory: str, file_hash: str) -> str:
    """
    Saves a tile map as a PNG. The tier is picked from the tiles present,
    not from the rendered pixels:
      - 'uniform': a single tile kind, stored as one pixel.
      - 'palettized': the LUT fits a PNG palette, so pixels store tile indices.
      - 'full': RGB, for catalogs too large for a palette.
    """
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, f"{file_hash}.png")

    present = np.unique(tile_map)
    if present.size == 1:
        uniform_color = tuple(int(c) for c in tile_lut[present[0]])
        Image.new('RGB', (1, 1), uniform_color).save(file_path, 'PNG')
        return 'uniform'

    if len(tile_lut) <= 256:
        # Negative sentinels wrap onto the fallback rows at the end of the LUT.
        lut_indices = np.mod(tile_map, len(tile_lut)).astype(np.uint8)
        lut_indices = color_maps.upscale_color_array(lut_indices, tile_resolution)
        # Pillow works with (height, width) arrays; tile maps are indexed [x, y].
        img = Image.fromarray(np.ascontiguousarray(lut_indices.T))
        img.putpalette(tile_lut.flatten().tolist())
        img.save(file_path, 'PNG')
        return 'palettized'

    color_array = color_maps.get_tile_color_array(tile_map, tile_lut)
    color_array = color_maps.upscale_color_array(color_array, tile_resolution)
    Image.fromarray(np.ascontiguousarray(np.transpose(color_array, (1, 0, 2)))).save(file_path, 'PNG')
    return 'full'


# --- Global variables for worker processes ---
worker_config = None
worker_lut = None
worker_maps_dir = None


def init_worker(config_dict, maps_dir):
    """Initializes the global state for each worker process."""
    global worker_config, worker_lut, worker_maps_dir

    worker_config = GenerationConfig.from_dict(config_dict)
    worker_lut = color_maps.create_tile_color_lut(DEFAULT_CATALOG)
    worker_maps_dir = maps_dir


def map_seed(base_seed, map_index: int):
    """Map i of a seeded batch uses base_seed + i. Unseeded batches stay unseeded."""
    if base_seed is None:
        return None
    return base_seed + map_index


def process_map(map_index: int) -> dict:
    """
    Generates and SAVES a single map. Returns only minimal metadata.
    """
    worker_logger = logging.getLogger(f"Worker-{os.getpid()}")
    config = replace(worker_config, seed=map_seed(worker_config.seed, map_index))

    grid = TerrainGenerator(config=config, logger=worker_logger).generate()
    tile_map = grid.tile_map()

    # Hash the tile map itself so identical maps share one image.
    file_hash = hashlib.sha256(tile_map.tobytes()).hexdigest()
    compression_type = save_map_image(tile_map, worker_lut, config.tile_resolution, worker_maps_dir, file_hash)

    return {
        'index': map_index,
        'seed': config.seed,
        'hash': file_hash,
        'compression_type': compression_type,
        'tile_counts': color_maps.tile_counts(tile_map, DEFAULT_CATALOG),
    }


# --- Main Baking Function ---
def bake_maps(config: dict, count: int, output_dir: str, num_workers: int, logger: logging.Logger) -> dict:
    """
    Generates `count` maps and saves them, with a manifest.json and the
    generation_config.json that produced them, to output_dir.

    Returns:
        dict: The manifest that was written.
    """
    generation_params = config.get('generation_parameters', {})
    gen_config = GenerationConfig.from_dict(generation_params)
    logger.info(f"Baking {count} map(s) with {gen_config.to_dict()}")

    maps_dir = os.path.join(output_dir, "maps")
    os.makedirs(maps_dir, exist_ok=True)

    manifest = {
        "map_count": count,
        "grid_size": gen_config.grid_size,
        "tile_resolution": gen_config.tile_resolution,
        "tile_names": list(DEFAULT_CATALOG.names),
        "maps": [None] * count,
    }
    saved_hashes = set()
    compression_stats = collections.Counter()

    start_time = time.perf_counter()
    tasks = range(count)

    def record(result):
        manifest["maps"][result['index']] = {
            "seed": result['seed'],
            "hash": result['hash'],
            "tile_counts": result['tile_counts'],
        }
        if result['hash'] not in saved_hashes:
            saved_hashes.add(result['hash'])
            compression_stats[result['compression_type']] += 1

    if num_workers > 1:
        logger.info(f"Using {num_workers} worker processes.")
        with multiprocessing.Pool(processes=num_workers, initializer=init_worker,
                                  initargs=(gen_config.to_dict(), maps_dir)) as pool:
            for result in tqdm(pool.imap_unordered(process_map, tasks), total=count, desc="Baking Maps"):
                record(result)
    else:
        init_worker(gen_config.to_dict(), maps_dir)
        for map_index in tqdm(tasks, total=count, desc="Baking Maps"):
            record(process_map(map_index))

    # --- Finalization ---
    manifest_path = os.path.join(output_dir, "manifest.json")
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)

    # The "birth certificate" of the batch.
    gen_config_path = os.path.join(output_dir, "generation_config.json")
    with open(gen_config_path, 'w') as f:
        json.dump(gen_config.to_dict(), f, indent=4)

    end_time = time.perf_counter()
    logger.info(f"Baking complete! Total time: {end_time - start_time:.2f} seconds.")
    logger.info(
        f"{count} maps -> {len(saved_hashes)} unique images saved "
        f"({compression_stats['uniform']} uniform, {compression_stats['palettized']} palettized, "
        f"{compression_stats['full']} full)"
    )
    logger.info(f"Baked maps and manifest.json saved to: {output_dir}")
    return manifest


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Offline Map Baker for the WFC Terrain Generator.")
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to a JSON file with a 'generation_parameters' section."
    )
    parser.add_argument("--count", type=int, default=1, help="Number of maps to generate.")
    parser.add_argument("--output", type=str, default=DEFAULT_OUTPUT_DIR, help="Output directory.")
    parser.add_argument(
        "--workers",
        type=int,
        default=max(1, multiprocessing.cpu_count() - 1),
        help="Worker processes. 1 runs everything in this process."
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("Baker")

    logger.info(f"Loading configuration from: {args.config}")
    try:
        with open(args.config, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.critical(f"Failed to load or parse config file: {e}")
        return 1

    if args.count < 1:
        logger.critical(f"--count must be at least 1, got {args.count}.")
        return 1

    try:
        bake_maps(config, args.count, args.output, min(args.workers, args.count), logger)
    except ValueError as e:
        logger.critical(f"Invalid generation parameters: {e}")
        return 1
    return 0


# --- Command-Line Interface ---
if __name__ == "__main__":
    sys.exit(main())
