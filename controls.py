"""
Slider controls bound to the sketch settings.

Each slider behaves like a range input: it owns its min/max/step, snaps and
clamps whatever the mouse gives it, and reports changes through a callback.
The panel turns slider changes into new ``config.Settings`` values and
refreshes the value labels drawn next to each slider.
"""

import dataclasses
import logging

import pygame

import config

logger = logging.getLogger(__name__)

_fonts = {}


def get_font(size=16):
    font = _fonts.get(size)
    if font is None:
        if not pygame.font.get_init():
            pygame.font.init()
        font = pygame.font.Font(None, size)
        _fonts[size] = font
    return font


def clamp(x, lo, hi):
    return max(lo, min(hi, x))


def txt(surf, s, x, y, size=16, col=config.TEXT_COLOR, anchor="topleft"):
    img = get_font(size).render(str(s), True, col)
    rct = img.get_rect(**{anchor: (x, y)})
    surf.blit(img, rct)
    return rct


class Slider:
    H = 8

    def __init__(self, label, x, y, w, lo, hi, step, val, on_change=None):
        self.label = label
        self.x, self.y, self.w = x, y, w
        self.lo, self.hi, self.step = lo, hi, step
        self.val = self.snap(val)
        self.on_change = on_change
        self.value_label = self.format(self.val)
        self._drag = False

    @property
    def track(self):
        return pygame.Rect(self.x, self.y + 20, self.w, self.H)

    def snap(self, v):
        v = clamp(v, self.lo, self.hi)
        if self.step:
            v = self.lo + round((v - self.lo) / self.step) * self.step
            v = clamp(v, self.lo, self.hi)
        return int(v) if isinstance(self.step, int) else v

    @staticmethod
    def format(v):
        return f"{v:g}"

    def set(self, v):
        """Move the slider to ``v``; fires ``on_change`` only if the value moved."""
        v = self.snap(v)
        if v == self.val:
            return False
        self.val = v
        if self.on_change is not None:
            self.on_change(v)
        return True

    def value_at(self, px):
        t = clamp((px - self.x) / self.w, 0.0, 1.0)
        return self.lo + t * (self.hi - self.lo)

    def handle(self, ev):
        if ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
            if self.track.inflate(20, 20).collidepoint(ev.pos):
                self._drag = True
                return self.set(self.value_at(ev.pos[0]))
        if ev.type == pygame.MOUSEBUTTONUP and ev.button == 1:
            self._drag = False
        if ev.type == pygame.MOUSEMOTION and self._drag:
            return self.set(self.value_at(ev.pos[0]))
        return False

    def draw(self, surf):
        txt(surf, self.label, self.x, self.y)
        txt(surf, self.value_label, self.x + self.w, self.y, anchor="topright")
        tr = self.track
        pygame.draw.rect(surf, config.TRACK_COLOR, tr, border_radius=4)
        t = (self.val - self.lo) / (self.hi - self.lo)
        cx = tr.x + int(t * self.w)
        pygame.draw.circle(surf, config.KNOB_COLOR, (cx, tr.centery), 8)


class ControlPanel:
    """Three sliders (polymer, concentration, energy) driving a Settings value."""

    def __init__(self, rect, settings=config.DEFAULT_SETTINGS, on_concentration=None):
        self.rect = pygame.Rect(rect)
        self.settings = settings
        self.on_concentration = on_concentration

        pad = 24
        w = (self.rect.w - 4 * pad) // 3
        y = self.rect.y + pad
        ranges = (
            ("Polymer", "polymer", config.POLYMER_RANGE),
            ("Concentration", "concentration", config.CONCENTRATION_RANGE),
            ("Energy", "energy", config.ENERGY_RANGE),
        )
        self.sliders = {}
        for i, (label, field_name, (lo, hi, step)) in enumerate(ranges):
            x = self.rect.x + pad + i * (w + pad)
            self.sliders[field_name] = Slider(
                label, x, y, w, lo, hi, step,
                getattr(settings, field_name),
                on_change=lambda v, name=field_name: self._changed(name, v),
            )

    def _changed(self, name, value):
        self.settings = dataclasses.replace(self.settings, **{name: value})
        slider = self.sliders[name]
        slider.value_label = slider.format(value)
        logger.debug(f"{name} -> {value}")
        if name == "concentration" and self.on_concentration is not None:
            self.on_concentration(value)

    def handle(self, ev):
        changed = False
        for slider in self.sliders.values():
            changed = slider.handle(ev) or changed
        return changed

    def draw(self, surf):
        pygame.draw.rect(surf, config.PANEL_COLOR, self.rect)
        for slider in self.sliders.values():
            slider.draw(surf)
