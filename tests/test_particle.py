import numpy as np
import pytest

from particle import Bounds, Particle, ParticleSystem, clamp_speed


def test_create_samples_inside_bounds(rng):
    spawn = Bounds(-100.0, 100.0, -50.0, 50.0)
    for class_id in range(20):
        p = Particle.create(class_id % 3, spawn, (10.0, 20.0), rng)
        assert -100.0 <= p.position[0] <= 100.0
        assert -50.0 <= p.position[1] <= 50.0
        assert 10.0 <= p.mass <= 20.0
        assert np.array_equal(p.velocity, [0.0, 0.0])
        assert p.class_id == class_id % 3


def test_create_with_fixed_mass(rng):
    p = Particle.create(0, Bounds(-1.0, 1.0, -1.0, 1.0), (100.0, 100.0), rng)
    assert p.mass == 100.0
    assert p.size == pytest.approx(10.0)


def test_translate_moves_by_velocity():
    p = Particle(0, (1.0, 2.0), (0.5, -0.25))
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert np.allclose(p.position, [1.5, 1.75])
    assert np.allclose(p.velocity, [0.5, -0.25])


def test_translate_reflects_without_clamping_position():
    p = Particle(0, (9.5, 0.0), (1.0, 0.0))
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    # Position stays outside; only the velocity is flipped.
    assert p.position[0] == pytest.approx(10.5)
    assert p.velocity[0] == pytest.approx(-1.0)

    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert p.position[0] == pytest.approx(9.5)
    assert p.velocity[0] == pytest.approx(-1.0)


def test_translate_exactly_at_bound_does_not_reflect():
    p = Particle(0, (9.0, -9.0), (1.0, -1.0))
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert np.array_equal(p.position, [10.0, -10.0])
    assert np.array_equal(p.velocity, [1.0, -1.0])


def test_translate_reflects_each_axis_independently():
    p = Particle(0, (0.0, 9.0), (1.0, 2.0))
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert np.array_equal(p.velocity, [1.0, -2.0])


def test_translate_lower_bounds():
    p = Particle(0, (-9.5, -9.5), (-1.0, -1.0))
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert np.array_equal(p.velocity, [1.0, 1.0])


def test_apply_acceleration_within_limit():
    p = Particle(0, (0.0, 0.0))
    p.apply_acceleration((1.0, 0.0), max_speed=2.0)
    assert np.array_equal(p.velocity, [1.0, 0.0])


def test_apply_acceleration_clamps_length_and_keeps_direction():
    p = Particle(0, (0.0, 0.0), (1.0, 1.0))
    p.apply_acceleration((2.0, 3.0), max_speed=2.0)
    assert np.linalg.norm(p.velocity) == pytest.approx(2.0)
    assert np.allclose(p.velocity / np.linalg.norm(p.velocity), np.array([3.0, 4.0]) / 5.0)


def test_clamp_speed_bound_holds_for_huge_accelerations(rng):
    velocities = np.zeros((500, 2))
    velocities += rng.normal(scale=1e150, size=(500, 2))
    clamp_speed(velocities, 2.0)
    speeds = np.hypot(velocities[:, 0], velocities[:, 1])
    assert np.all(speeds <= 2.0 + 1e-12)
    assert np.allclose(speeds, 2.0)


def test_clamp_speed_zero_limit_and_zero_velocity():
    velocities = np.array([[0.0, 0.0], [3.0, 4.0]])
    clamp_speed(velocities, 0.0)
    assert np.array_equal(velocities, np.zeros((2, 2)))


def test_bounds_coerce_forms():
    expected = Bounds(-1.0, 1.0, -2.0, 2.0)
    assert Bounds.coerce(expected) is expected
    assert Bounds.coerce({"left": -1, "right": 1, "bottom": -2, "top": 2}) == expected
    assert Bounds.coerce([-1, 1, -2, 2]) == expected
    assert expected.width == 2.0
    assert expected.height == 4.0


def test_bounds_coerce_rejects_inverted():
    with pytest.raises(ValueError):
        Bounds.coerce((1.0, -1.0, 0.0, 1.0))


def test_system_create_orders_by_class(rng):
    system = ParticleSystem.create(3, 4, Bounds(-10.0, 10.0, -10.0, 10.0), (1.0, 2.0), rng)
    assert len(system) == 12
    assert system.classes.tolist() == [0] * 4 + [1] * 4 + [2] * 4
    assert system.positions.shape == (12, 2)
    assert system.velocities.shape == (12, 2)
    assert np.all(system.velocities == 0.0)
    assert np.allclose(system.sizes, np.sqrt(system.masses))


def test_population_size(rng):
    system = ParticleSystem.create(5, 500, Bounds(-100.0, 100.0, -100.0, 100.0), (100.0, 100.0), rng)
    assert system.particle_count == 2500
    assert np.bincount(system.classes).tolist() == [500] * 5


def test_system_items_are_live_views():
    system = ParticleSystem([Particle(0, (0.0, 0.0), (1.0, 0.0)), Particle(1, (5.0, 5.0))])
    p = system[0]
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    assert np.array_equal(system.positions[0], [1.0, 0.0])
    p.apply_acceleration((0.0, 10.0), max_speed=1.0)
    assert np.allclose(system.velocities[0], p.velocity)
    assert [q.class_id for q in system] == [0, 1]


def test_system_rejects_out_of_range_class():
    with pytest.raises(ValueError):
        ParticleSystem([Particle(2, (0.0, 0.0))], num_classes=2)


def test_integer_arrays_are_converted_to_float():
    p = Particle(0, np.array([0, 0]), np.array([1, 0]))
    assert p.position.dtype == np.float64
    assert p.velocity.dtype == np.float64
    p.translate(Bounds(-10.0, 10.0, -10.0, 10.0))
    p.apply_acceleration((0.5, 0.0), 2.0)
    assert np.array_equal(p.position, [1.0, 0.0])
    assert np.array_equal(p.velocity, [1.5, 0.0])


def test_float_arrays_are_not_copied():
    position = np.array([1.0, 2.0])
    p = Particle(0, position)
    assert p.position is position


@pytest.mark.parametrize("edges", [
    (float("nan"), 1.0, -1.0, 1.0),
    (-1.0, float("inf"), -1.0, 1.0),
    (-1.0, 1.0, -float("inf"), 1.0),
])
def test_bounds_coerce_rejects_non_finite(edges):
    with pytest.raises(ValueError, match="finite"):
        Bounds.coerce(edges)
