import numpy as np
import pytest

import config
import field
from field import ParticleField


def pair_forces(distance, repulsion_radius, attraction_radius=0.0, attraction_strength=0.0):
    positions = np.array([[100.0, 100.0], [100.0 + distance, 100.0]])
    accelerations = np.zeros((2, 2))
    field.calculate_forces(
        positions,
        np.zeros((2, 2)),
        accelerations,
        repulsion_radius,
        config.REPULSION_SCALE,
        attraction_radius,
        attraction_strength,
    )
    return accelerations


def test_repulsion_points_away_from_other_particle():
    acc = pair_forces(20.0, 80.0)
    assert acc[0, 0] < 0
    assert acc[1, 0] > 0
    assert acc[0, 1] == pytest.approx(0)


def test_repulsion_weakens_with_distance():
    magnitudes = [np.linalg.norm(pair_forces(d, 80.0)[0]) for d in (5.0, 10.0, 20.0, 40.0, 79.0)]
    assert all(a > b for a, b in zip(magnitudes, magnitudes[1:]))
    assert magnitudes[2] == pytest.approx(1 / (20.0 * config.REPULSION_SCALE))


def test_no_force_outside_repulsion_radius_in_fade_mode():
    acc = pair_forces(90.0, 80.0)
    assert np.allclose(acc, 0)


def test_coincident_particles_exert_no_force():
    acc = pair_forces(0.0, 80.0)
    assert np.all(np.isfinite(acc))
    assert np.allclose(acc, 0)


@pytest.mark.parametrize("distance", [30.0, 60.0, 99.0])
def test_attraction_band_has_constant_pull(distance):
    acc = pair_forces(distance, 20.0, attraction_radius=100.0, attraction_strength=0.05)
    assert acc[0, 0] == pytest.approx(0.05)
    assert acc[1, 0] == pytest.approx(-0.05)


def test_wrap_field_attracts_between_radii(rng):
    f = ParticleField("wrap", rng=rng)
    f.add(100, 100)
    f.add(150, 100)
    # polymer 0 puts the repulsion radius at 5
    f.calculate_forces(config.Settings(polymer=0, concentration=2, energy=0))
    assert np.allclose(f.accelerations[0], [0.05, 0.0])
    assert np.allclose(f.accelerations[1], [-0.05, 0.0])


def test_noise_magnitude_follows_energy(rng):
    f = ParticleField("fade", rng=rng)
    for i in range(5):
        f.add(100 * i, 10)
    f.calculate_forces(config.Settings(polymer=0, concentration=5, energy=100))
    assert np.linalg.norm(f.accelerations, axis=1) == pytest.approx(np.full(5, 0.5))


def test_speed_is_capped(rng):
    f = ParticleField("fade", rng=rng)
    f.spawn(40)
    settings = config.Settings(polymer=100, concentration=40, energy=100)
    for _ in range(10):
        f.step(settings)
        speeds = np.linalg.norm(f.velocities, axis=1)
        assert np.all(speeds <= f.max_speeds + 1e-9)
        f.sweep()


def test_integrate_clamps_to_max_speed():
    positions = np.zeros((1, 2))
    velocities = np.array([[4.0, 0.0]])
    accelerations = np.array([[0.0, 4.0]])
    field.integrate(positions, velocities, accelerations, np.array([5.0]))
    assert np.linalg.norm(velocities[0]) == pytest.approx(5.0)
    assert positions[0] == pytest.approx(velocities[0])


def test_lone_still_particle_does_not_move(rng, still):
    f = ParticleField("fade", rng=rng)
    f.add(200, 150)
    f.step(still)
    assert np.allclose(f.positions[0], [200, 150])
    assert np.allclose(f.velocities[0], [0, 0])


def test_two_close_particles_are_pushed_apart(rng):
    f = ParticleField("wrap", rng=rng)
    f.add(300, 200)
    f.add(350, 200)
    # polymer 100 maps to a repulsion radius of 80 in wrap mode
    settings = config.Settings(polymer=100, concentration=2, energy=0)
    assert field.repulsion_radius(settings, f.tuning) == pytest.approx(80)

    f.step(settings)
    assert f.accelerations[0, 0] < 0
    assert f.accelerations[1, 0] > 0
    assert np.linalg.norm(f.positions[1] - f.positions[0]) > 50


def test_lifespan_decays_and_dead_particle_is_swept(rng, still):
    f = ParticleField("fade", rng=rng)
    f.add(200, 200, lifespan=4.0)

    history = []
    while len(f):
        f.step(still)
        history.append(f.lifespans[0])
        dead = f.is_dead()[0]
        f.sweep()
        if dead:
            assert len(f) == 0

    assert history == sorted(history, reverse=True)
    assert history[-1] == 0


def test_particle_leaving_canvas_dies_same_update(rng, still):
    f = ParticleField("fade", rng=rng)
    f.add(config.WIDTH + 10, 50, size=4)
    f.add(-1.5, 50, size=4)  # within its radius of the edge
    f.step(still)
    assert f.lifespans[0] == 0
    assert f.lifespans[1] > 0
    assert f.sweep() == 1
    assert len(f) == 1


def test_sweep_keeps_survivor_order(rng):
    f = ParticleField("fade", rng=rng)
    for i, life in enumerate([10.0, 0.0, 20.0, 0.0, 30.0]):
        f.add(10 * i, 10, lifespan=life)
    assert f.sweep() == 2
    assert list(f.lifespans) == [10.0, 20.0, 30.0]
    assert list(f.positions[:, 0]) == [0.0, 20.0, 40.0]
    assert f.colors.shape == (3, 4)


def test_fade_field_replenishes_from_centre(rng):
    f = ParticleField("fade", rng=rng)
    f.replenish(25)
    assert len(f) == 25
    assert np.all(f.positions == [config.WIDTH / 2, config.HEIGHT / 2])
    speeds = np.linalg.norm(f.velocities, axis=1)
    assert np.all((speeds >= 1) & (speeds < 4))
    assert np.all((f.lifespans >= 150) & (f.lifespans < 300))
    assert np.all((f.sizes >= 3) & (f.sizes < 7))

    f.replenish(10)
    assert len(f) == 25


def test_step_tops_up_to_concentration(rng):
    f = ParticleField("fade", rng=rng)
    f.step(config.Settings(polymer=50, concentration=30, energy=10))
    assert len(f) == 30


def test_wrap_repositions_to_opposite_edge(rng, still):
    f = ParticleField("wrap", rng=rng)
    f.add(config.WIDTH - 1, 50, vx=3.0)
    f.add(1, 50, vx=-3.0)
    f.add(50, config.HEIGHT - 1, vy=3.0)
    f.step(still)
    assert f.positions[0, 0] == 0
    assert f.positions[1, 0] == config.WIDTH
    assert f.positions[2, 1] == 0
    assert len(f) == 3
    assert not f.is_dead().any()


def test_wrap_reset_rebuilds_with_new_concentration(rng):
    f = ParticleField("wrap", rng=rng)
    f.reset(150)
    assert len(f) == 150
    f.reset(50)
    assert len(f) == 50
    assert np.all((f.positions[:, 0] >= 0) & (f.positions[:, 0] <= config.WIDTH))
    assert np.all((f.positions[:, 1] >= 0) & (f.positions[:, 1] <= config.HEIGHT))
    assert np.all(f.velocities == 0)


def test_wrap_particles_never_die(rng):
    f = ParticleField("wrap", rng=rng)
    f.reset(20)
    settings = config.Settings(polymer=60, concentration=20, energy=100)
    for _ in range(20):
        f.step(settings)
        assert f.sweep() == 0
    assert len(f) == 20


def test_display_alpha_tracks_lifespan(rng):
    f = ParticleField("fade", rng=rng)
    f.add(0, 0, lifespan=300.0)
    f.add(0, 0, lifespan=100.0)
    f.add(0, 0, lifespan=0.0)
    assert list(f.display_colors()[:, 3]) == [255, 100, 0]
    # the stored colour keeps its original alpha
    assert np.all(f.colors[:, 3] == 255)


def test_colors_come_from_palette(rng):
    f = ParticleField("wrap", rng=rng)
    f.reset(30)
    palette = {tuple(c) for c in field.palette_rgba(config.PALETTE)}
    assert {tuple(c) for c in f.colors} <= palette


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        ParticleField("bounce")
