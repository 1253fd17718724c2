"""
Cosmos Explorer - Main Application

Interactive pygame front end over game.simulation.Simulation:
- point-cloud view of the resident tier
- click to select, ENTER to travel / inspect, BACKSPACE to go back
- autopilot, time controls, reseed and Big Bang from the keyboard
"""

import argparse
import logging
import random
import sys

import pygame

from core.config import ConfigError, SimConfig
from core.types import ViewLevel
from game.simulation import Simulation
from rendering.adapter import (
    BACK_LABELS,
    LOCATION_MESSAGES,
    coordinate_readout,
    summary_fields,
    transition_banner,
)
from rendering.pygame_view import (
    ACCENT_YELLOW,
    BG_DARK,
    FG_DIM,
    PygameRenderer,
)

# Window settings
WIDTH, HEIGHT = 1280, 800
FPS = 60
TITLE = "Cosmos Explorer - Alpha v0.1"

POPULATION_BY_LEVEL = {
    ViewLevel.UNIVERSE: "universe",
    ViewLevel.GALAXY: "galaxy",
    ViewLevel.SYSTEM: "system",
}

HELP_LINES = [
    "CLICK select   ENTER travel/inspect   BACKSPACE back   C galactic core",
    "A autopilot   SPACE pause   +/- speed   R reseed   B big bang   L location",
    "1-4 quality (next reseed)   drag orbit   wheel zoom   F11 fullscreen   ESC quit",
]


class CosmosApp:
    """
    Main application

    Owns the pygame window, the reference renderer and the simulation.
    """

    def __init__(self, config: SimConfig, autopilot: bool = False, big_bang: bool = False):
        pygame.init()

        self.fullscreen = False
        self.screen = pygame.display.set_mode((WIDTH, HEIGHT), pygame.RESIZABLE)
        pygame.display.set_caption(TITLE)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("monospace", 14)

        self.renderer = PygameRenderer((WIDTH, HEIGHT))
        self.sim = Simulation(config, renderer=self.renderer,
                              autopilot=autopilot, big_bang=big_bang)
        self.show_location = False
        self.dragging = False

        self.running = True
        print(f"\n{TITLE}")
        print("=" * 60)
        print(f"Seed 0x{config.seed:X}, {config.star_count:,} stars")
        print("Initialized successfully!")
        print("=" * 60)

    # ── Input ────────────────────────────────────────────────────────────────

    def handle_key(self, key: int):
        sim = self.sim
        if key == pygame.K_ESCAPE:
            self.running = False
        elif key == pygame.K_F11:
            self.toggle_fullscreen()
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER):
            sim.travel_to()
        elif key == pygame.K_BACKSPACE:
            sim.go_back()
        elif key == pygame.K_c:
            sim.select_core()
        elif key == pygame.K_a:
            sim.set_autopilot_enabled(not sim.autopilot.enabled)
        elif key == pygame.K_SPACE:
            sim.toggle_pause()
        elif key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
            sim.speed_up()
        elif key in (pygame.K_MINUS, pygame.K_KP_MINUS):
            sim.speed_down()
        elif key == pygame.K_r:
            sim.set_seed(random.randrange(10000))
        elif key == pygame.K_b:
            sim.big_bang()
        elif key == pygame.K_l:
            self.show_location = not self.show_location
        elif pygame.K_1 <= key <= pygame.K_4:
            preset = ("LOW", "MED", "HIGH", "ULTRA")[key - pygame.K_1]
            if sim.set_quality(preset):
                print(f"Quality {preset} (applies on next reseed)")

    def handle_click(self, pos):
        name = POPULATION_BY_LEVEL[self.sim.get_current_level()]
        index = self.renderer.pick(name, pos)
        if index is not None:
            self.sim.select(index)

    def handle_events(self):
        camera = self.sim.ctx.camera
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                self.handle_key(event.key)
            elif event.type == pygame.VIDEORESIZE:
                self.handle_resize(event.w, event.h)
            elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.dragging = False
            elif event.type == pygame.MOUSEMOTION and event.buttons[0]:
                self.dragging = True
                dx, dy = event.rel
                camera.orbit(-dx * 0.005, dy * 0.005)
            elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                if not self.dragging:
                    self.handle_click(event.pos)
            elif event.type == pygame.MOUSEWHEEL:
                camera.zoom(0.9 if event.y > 0 else 1.1)

    # ── HUD ──────────────────────────────────────────────────────────────────

    def draw_hud(self):
        sim = self.sim
        ctx = sim.ctx
        clock = ctx.clock
        cx, cy, cz = coordinate_readout(ctx.camera.position, ctx.world_offset)
        status = [
            f"LEVEL {ctx.level.name}   {clock.universe_time:.2f} Bn YR   {clock.speed_label}",
            f"X {cx}  Y {cy}  Z {cz}",
            f"FPS {int(self.clock.get_fps())}   AUTOPILOT {'ON' if sim.autopilot.enabled else 'OFF'}",
            f"[BACKSPACE] {BACK_LABELS[ctx.level]}",
        ]
        self.renderer.draw_text(self.screen, self.font, status, (10, 10))

        w, h = self.screen.get_size()
        if ctx.transition is not None:
            title, msg = transition_banner(ctx.transition.to_level,
                                           ctx.transition.descending,
                                           ctx.transition.target.position)
            self.renderer.draw_text(self.screen, self.font, [title, msg],
                                    (w // 2 - 160, h // 2 - 20), ACCENT_YELLOW)
        else:
            self.renderer.draw_text(self.screen, self.font, [LOCATION_MESSAGES[ctx.level]],
                                    (10, 80), FG_DIM)

        summary = sim.location_summary() if self.show_location else sim.get_selected_target_summary()
        if summary is not None:
            f = summary_fields(summary)
            panel = [
                "CURRENT LOCATION" if self.show_location else "TARGET ANALYSIS",
                f["designation"], f["type"], f"AGE  {f['age']}",
                f"MASS {f['mass']}", f"RAD  {f['radius']}", f"LUM  {f['luminosity']}",
                *f["composition"].splitlines(),
            ]
            aurora = sim.aurora_levels().get(summary.designation)
            if aurora is not None:
                panel.append(f"AURORA {aurora:.0%}")
            self.renderer.draw_text(self.screen, self.font, panel, (w - 360, 10))

        self.renderer.draw_text(self.screen, self.font, HELP_LINES,
                                (10, h - 3 * self.font.get_linesize() - 10), FG_DIM)

    # ── Loop ─────────────────────────────────────────────────────────────────

    def run(self):
        print("\nStarting main loop...")
        print("Press ESC to quit\n")

        while self.running:
            dt = self.clock.tick(FPS) / 1000.0
            self.handle_events()
            self.sim.step(dt)

            self.screen.fill(BG_DARK)
            self.renderer.render(self.screen, flash=self.sim.ctx.clock.flash)
            self.draw_hud()
            pygame.display.flip()

        self.quit()

    def toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        if self.fullscreen:
            info = pygame.display.Info()
            size = (info.current_w, info.current_h)
            self.screen = pygame.display.set_mode(size, pygame.FULLSCREEN)
        else:
            size = (WIDTH, HEIGHT)
            self.screen = pygame.display.set_mode(size, pygame.RESIZABLE)
        self.renderer.resize(size)
        print(f"Display {size[0]}x{size[1]}")

    def handle_resize(self, width: int, height: int):
        if not self.fullscreen:
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
            self.renderer.resize((width, height))

    def quit(self):
        print("\nShutting down...")
        pygame.quit()
        sys.exit(0)


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description=TITLE)
    ap.add_argument("--seed", type=int, default=1337)
    ap.add_argument("--quality", default="MED", help="LOW, MED, HIGH or ULTRA")
    ap.add_argument("--autopilot", action="store_true")
    ap.add_argument("--big-bang", action="store_true", help="start at universe age 0")
    ap.add_argument("--verbose", "-v", action="store_true")
    return ap.parse_args(argv)


def main(argv=None):
    """Entry point"""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    try:
        config = SimConfig(seed=args.seed).with_quality(args.quality)
    except ConfigError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(2)

    try:
        app = CosmosApp(config, autopilot=args.autopilot, big_bang=args.big_bang)
        app.run()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        pygame.quit()
        sys.exit(0)
    except Exception:
        logging.getLogger(__name__).exception("FATAL ERROR")
        pygame.quit()
        sys.exit(1)


if __name__ == "__main__":
    main()
