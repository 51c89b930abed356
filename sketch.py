import argparse
import logging
import time

import imageio.v2 as imageio  # v2 API is more stable
import numpy as np
import pygame

import config
from controls import ControlPanel
from draw import draw_background, draw_particles
from field import ParticleField

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=config.TITLE)
    parser.add_argument("--mode", choices=config.MODES, default=config.MODE)
    parser.add_argument("--record", action="store_true", default=config.RECORD)
    parser.add_argument("--output", default=config.OUTPUT_FILE)
    parser.add_argument(
        "--frames", type=int, default=config.FRAME_LIMIT, help="stop after N frames (0 = no limit)"
    )
    return parser.parse_args(argv)


class Sketch:
    def __init__(
        self,
        mode=config.MODE,
        record=config.RECORD,
        output_file=config.OUTPUT_FILE,
        frame_limit=config.FRAME_LIMIT,
        settings=config.DEFAULT_SETTINGS,
        rng=None,
    ):
        self.mode = mode
        self.record = record
        self.output_file = output_file
        self.frame_limit = frame_limit
        self.background = config.BACKGROUNDS[mode]

        pygame.init()
        pygame.display.set_caption(config.TITLE)
        self.screen = pygame.display.set_mode((config.WIDTH, config.HEIGHT + config.PANEL_HEIGHT))
        self.canvas = pygame.Surface((config.WIDTH, config.HEIGHT))
        self.canvas.fill(self.background[:3])
        self.clock = pygame.time.Clock()

        self.field = ParticleField(mode, config.WIDTH, config.HEIGHT, rng=rng)
        on_concentration = self.field.reset if mode == "wrap" else None
        self.panel = ControlPanel(
            (0, config.HEIGHT, config.WIDTH, config.PANEL_HEIGHT),
            settings,
            on_concentration=on_concentration,
        )
        if mode == "wrap":
            self.field.reset(settings.concentration)

        self.frames = []
        self.frame_count = 0
        self.timings = {"forces": 0.0, "draw": 0.0, "sweep": 0.0}

    @property
    def settings(self):
        return self.panel.settings

    def frame(self):
        """Run one animation frame: step, render, then sweep the dead."""
        start_time = time.time()
        self.field.step(self.settings)
        end_time = time.time()
        self.timings["forces"] += end_time - start_time

        start_time = time.time()
        draw_background(self.canvas, self.background)
        draw_particles(self.canvas, self.field)
        self.screen.blit(self.canvas, (0, 0))
        self.panel.draw(self.screen)
        end_time = time.time()
        self.timings["draw"] += end_time - start_time

        start_time = time.time()
        self.field.sweep()
        end_time = time.time()
        self.timings["sweep"] += end_time - start_time

        self.frame_count += 1

        if self.record:
            frame_data = pygame.surfarray.array3d(self.canvas)
            frame_data = np.transpose(frame_data, (1, 0, 2))
            self.frames.append(frame_data)

    def run(self):
        logger.info(
            f"Starting {self.mode} sketch at {config.WIDTH}x{config.HEIGHT} "
            f"with {self.settings}"
        )
        running = True
        start_time = time.time()

        while running:
            if self.frame_limit and self.frame_count >= self.frame_limit:
                logger.info(
                    f"Time taken for {self.frame_limit} frames: {time.time() - start_time:.2f} seconds"
                )
                break

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                else:
                    self.panel.handle(event)
            if not running:
                break

            self.frame()
            pygame.display.flip()
            self.clock.tick(config.FPS)

        if self.record and self.frames:
            imageio.mimsave(self.output_file, self.frames, fps=config.FPS)
            logger.info(f"Saved {len(self.frames)} frames to {self.output_file}")

        pygame.quit()
        for name, total in self.timings.items():
            logger.info(f"Time taken for {name}: {total:.3f} seconds")


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    args = parse_args(argv)
    Sketch(
        mode=args.mode,
        record=args.record,
        output_file=args.output,
        frame_limit=args.frames,
    ).run()


if __name__ == "__main__":
    main()
