# main.py
"""
Main entry point for the Entropy Particles demo.

This script orchestrates the entire application lifecycle:
1. Loads configuration from `config.json`.
2. Initializes the logging system.
3. Opens the window and configures one engine per canvas.
4. Runs the frame driver that delivers input events and frame callbacks.
5. Handles clean shutdown.
"""
import argparse
import logging
from utils import setup_logging, load_config
import numpy as np
import cProfile
import pstats
import io


def dispatch_event(event, window, engines):
    """
    Delivers one input event to the canvas engines.

    Key events reach every engine. A mouse click only reaches the engine that
    owns the topmost canvas under the pointer.
    """
    import pygame

    if event.type != pygame.MOUSEBUTTONDOWN:
        for engine in engines:
            engine.handle_event(event)
        return

    canvas = window.canvas_at(event.pos)
    for engine in engines:
        if engine.config is not None and engine.surface is canvas:
            engine.handle_event(event)
            return


def main(argv=None):
    """
    The main function to run the particle canvases.
    """
    parser = argparse.ArgumentParser(description="Procedural particle canvases.")
    parser.add_argument('--config', default='config.json', help="Path to the JSON configuration.")
    args = parser.parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return 1

    setup_logging(config)

    logging.info("--- Entropy Particles Starting ---")

    window_params = config.get('window', {})
    run_params = config.get('run_control', {})

    import pygame
    from engine import EntropyParticles
    from exceptions import ConfigurationError
    from loop import FrameScheduler
    from storage import DirectoryDownloadSink, JsonFileStore, MemoryStore, StorageScopes
    from visualization import Window

    # --- Component Initialization ---
    window = Window(
        size=tuple(window_params.get('size', (1280, 720))),
        background_color=window_params.get('backgroundColor', (0, 0, 0)),
        title=window_params.get('title', "Entropy Particles"),
        fullscreen=window_params.get('fullscreen', False),
    )
    fps = window_params.get('fps', 60)

    scheduler = FrameScheduler()
    scopes = StorageScopes(MemoryStore(), JsonFileStore(config.get('storage_file', 'data/positions.json')))
    sink = DirectoryDownloadSink(config.get('download_dir', 'downloads'))

    canvas_configs = config.get('canvases', [])
    # Every canvas gets its own stream derived from the master seed.
    seeds = np.random.SeedSequence(config.get('seed')).spawn(len(canvas_configs))

    engines = []
    for canvas_config, seed in zip(canvas_configs, seeds):
        canvas_config = dict(canvas_config)
        canvas_section = dict(canvas_config.get('canvas', {}))
        if canvas_section.get('appendTo') == 'window':
            canvas_section['appendTo'] = window
        if canvas_section.get('size') == 'window':
            canvas_section['size'] = {'width': window.size[0], 'height': window.size[1]}
        canvas_config['canvas'] = canvas_section

        engine = EntropyParticles(
            scheduler=scheduler, scopes=scopes, download_sink=sink,
            rng=np.random.default_rng(seed),
        )
        try:
            engine.apply_config(canvas_config)
        except ConfigurationError as e:
            logging.critical(f"Skipping canvas: {e}")
            continue
        engine.start()
        engines.append(engine)

    if not engines:
        logging.critical("No canvas could be configured. Exiting.")
        window.close()
        return 1

    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    log_throttle = run_params.get('log_throttle_steps', 600)
    max_steps = run_params.get('max_steps', 0) # 0 runs until the window is closed

    running = True
    step_num = 0

    if profiler:
        profiler.enable()
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down.")
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down.")
                running = False
            else:
                dispatch_event(event, window, engines)

        scheduler.run_pending(pygame.time.get_ticks())
        window.present()
        window.clock.tick(fps)
        step_num += 1

        if step_num % log_throttle == 0:
            live = sum(len(engine.particles) for engine in engines)
            logging.info(f"Frame {step_num} | {live} live particles | {window.clock.get_fps():.1f} fps")

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping.")
            running = False
    if profiler:
        profiler.disable()

    for engine in engines:
        engine.pause()
    window.close()
    logging.info("Frame loop finished.")

    if profiler:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Entropy Particles Shutting Down ---")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
