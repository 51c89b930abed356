import math

import pygame

_overlays = {}
_sprites = {}


def draw_background(surface, rgba):
    """Wash the surface with a translucent colour so older frames fade into trails."""
    key = (surface.get_size(), tuple(rgba))
    overlay = _overlays.get(key)
    if overlay is None:
        overlay = pygame.Surface(surface.get_size(), pygame.SRCALPHA)
        overlay.fill(rgba)
        _overlays[key] = overlay
    surface.blit(overlay, (0, 0))


def particle_sprite(size, color):
    """Borderless filled circle of diameter ``size`` on a transparent surface."""
    diameter = max(1, math.ceil(size))
    key = (diameter, size, tuple(color))
    sprite = _sprites.get(key)
    if sprite is None:
        sprite = pygame.Surface((diameter, diameter), pygame.SRCALPHA)
        pygame.draw.circle(sprite, color, (diameter / 2, diameter / 2), size / 2)
        _sprites[key] = sprite
    return sprite


def draw_particles(surface, field):
    colors = field.display_colors()
    for position, size, color in zip(field.positions, field.sizes, colors):
        if color[3] == 0:
            continue
        # Quantise the size so the sprite cache stays small
        size = round(float(size) * 2) / 2
        sprite = particle_sprite(size, tuple(int(c) for c in color))
        surface.blit(sprite, sprite.get_rect(center=(int(round(position[0])), int(round(position[1])))))


def clear_cache():
    _overlays.clear()
    _sprites.clear()
