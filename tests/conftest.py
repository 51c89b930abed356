import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pygame
import pytest

import config


@pytest.fixture(scope="session", autouse=True)
def pygame_session():
    pygame.init()
    yield
    pygame.quit()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def still():
    """Settings with no jitter and no automatic spawning."""
    return config.Settings(polymer=70, concentration=0, energy=0)
