# main.py
"""
Main entry point for the Particle Life simulation.

This script orchestrates the entire simulation lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Builds the simulation and the window that hosts it.
4. Runs the main loop: one tick and one frame per iteration.
5. Handles clean shutdown.
"""
import argparse
import cProfile
import io
import logging
import pstats
import sys
import numpy as np

from utils import setup_logging, load_config


def main(argv=None) -> int:
    """
    The main function to run the simulation.
    """
    parser = argparse.ArgumentParser(description="Particle Life simulation.")
    parser.add_argument('--config', default='config.json', help="Path to the JSON configuration file.")
    args = parser.parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return 1

    setup_logging(config)
    logging.info("--- Particle Life Simulation Starting ---")

    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})

    from simulation import initialize
    from visualization import Visualizer

    try:
        sim = initialize(config.get('simulation_parameters', {}))
    except ValueError:
        logging.critical("Simulation could not be initialized. Exiting.")
        return 1

    visualizer = Visualizer(
        num_classes=sim.matrix.num_classes,
        vis_params=vis_params,
        sim_params=sim.params,
    )

    log_throttle = run_params.get('log_throttle_steps', 100)
    max_steps = run_params.get('max_steps', 0)  # 0 runs until the window is closed
    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    running = True
    if profiler:
        profiler.enable()
    while running:
        # Bounds are re-read every frame; the window may have been resized.
        sim.step(visualizer.bounds)

        if not visualizer.draw(sim):
            running = False

        if log_throttle and sim.step_count % log_throttle == 0:
            logging.info(f"Simulation step {sim.step_count}")
            avg_speed = np.mean(np.linalg.norm(sim.particles.velocities, axis=1))
            logging.debug(f"Step {sim.step_count} | Average Speed: {avg_speed:.4f}")

        if max_steps and sim.step_count >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
            running = False
    if profiler:
        profiler.disable()

    visualizer.close()
    logging.info("Simulation loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Life Simulation Shutting Down ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
