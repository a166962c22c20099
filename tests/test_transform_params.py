import math

import numpy as np
import pytest

from compositing.layout_solver import solve_layout
from compositing.transform_params import (MIN_DESIGN_SCALE, PARAMETER_SPECS, LiveParameters,
                                          compute_uniforms, design_scale, offset_fraction,
                                          rotation_radians)


@pytest.fixture
def fit():
    return solve_layout(1000, 1000, 500, 1000, 1000, 1000)


def test_design_scale_is_linear(fit):
    assert design_scale(fit, 0) == (0, 0)
    assert design_scale(fit, 1) == (fit.design_area_width, fit.design_area_height)
    assert design_scale(fit, 0.45) == pytest.approx((0.225, 0.45))


def test_rotation_radians():
    assert rotation_radians(0) == 0
    assert rotation_radians(360) == pytest.approx(2 * math.pi)
    assert rotation_radians(-5) == pytest.approx(-0.0873, abs=1e-4)
    # Periodic in 360 degrees
    assert math.sin(rotation_radians(7)) == pytest.approx(math.sin(rotation_radians(367)))
    assert math.cos(rotation_radians(7)) == pytest.approx(math.cos(rotation_radians(367)))


def test_offset_fraction():
    assert offset_fraction(17) == pytest.approx(0.017)
    assert offset_fraction(-200) == pytest.approx(-0.2)


def test_compute_uniforms_from_defaults(fit):
    params = LiveParameters()
    uniforms = compute_uniforms(params, fit)

    assert uniforms.multiply is True
    assert uniforms.displacement is True
    assert uniforms.displacement_intensity == pytest.approx(0.012)
    assert uniforms.multiply_intensity == pytest.approx(-0.15)
    assert uniforms.blend_opacity == pytest.approx(0.95)
    assert uniforms.rotation == pytest.approx(-5 / 360 * 2 * math.pi)
    assert uniforms.offset_x == pytest.approx(0.017)
    assert uniforms.offset_y == pytest.approx(0.07)
    assert uniforms.design_scale == pytest.approx((0.225, 0.45))
    assert uniforms.mockup_size == fit.mockup_size
    assert uniforms.mockup_offset == fit.mockup_offset


def test_compute_uniforms_does_not_touch_inputs(fit):
    params = LiveParameters(scale=0.3)
    before_params = params.to_dict()
    before_fit = fit.to_dict()

    compute_uniforms(params, fit)

    assert params.to_dict() == before_params
    assert fit.to_dict() == before_fit


def test_zero_scale_is_raised_to_epsilon(fit):
    uniforms = compute_uniforms(LiveParameters(scale=0.0), fit)

    assert uniforms.design_scale == (MIN_DESIGN_SCALE, MIN_DESIGN_SCALE)


def test_live_parameters_snapshot_is_independent():
    params = LiveParameters()
    snapshot = params.snapshot()

    params.update(rotation_degrees=3.5, multiply_enabled=False)

    assert snapshot.rotation_degrees == -5.0
    assert snapshot.multiply_enabled is True
    assert params.rotation_degrees == 3.5


def test_live_parameters_reject_unknown_names():
    params = LiveParameters()
    with pytest.raises(KeyError):
        params.update(brightness=1.0)


@pytest.mark.parametrize('name, raw, expected', [
    ('rotation_degrees', 12.0, 10.0),
    ('rotation_degrees', -3.3, -3.5),
    ('offset_x_pixels', 17.4, 17.0),
    ('offset_y_pixels', -250, -200.0),
    ('scale', 0.456, 0.46),
    ('blend_opacity', 0.93, 0.95),
    ('multiply_intensity', -0.12, -0.1),
    ('displacement_intensity', 0.0124, 0.012),
])
def test_control_surface_clamps_and_snaps(name, raw, expected):
    assert PARAMETER_SPECS[name].coerce(raw) == pytest.approx(expected)


def test_control_surface_type_checks():
    with pytest.raises(ValueError):
        PARAMETER_SPECS['scale'].coerce('big')
    with pytest.raises(ValueError):
        PARAMETER_SPECS['scale'].coerce(True)
    with pytest.raises(ValueError):
        PARAMETER_SPECS['scale'].coerce(float('nan'))
    with pytest.raises(ValueError):
        PARAMETER_SPECS['multiply_enabled'].coerce(1)

    assert PARAMETER_SPECS['multiply_enabled'].coerce(False) is False


def test_every_live_parameter_has_a_control():
    assert set(LiveParameters().to_dict()) == set(PARAMETER_SPECS)


@pytest.mark.parametrize('name, value', [
    ('scale', None),
    ('scale', '0.5'),
    ('scale', True),
    ('rotation_degrees', float('nan')),
    ('multiply_enabled', 1),
    ('displacement_enabled', None),
])
def test_check_rejects_wrong_types(name, value):
    with pytest.raises(ValueError):
        PARAMETER_SPECS[name].check(value)


def test_check_does_not_clamp():
    assert PARAMETER_SPECS['rotation_degrees'].check(45) == 45
    assert PARAMETER_SPECS['scale'].check(np.float32(2.5)) == np.float32(2.5)
    assert PARAMETER_SPECS['multiply_enabled'].check(np.bool_(False)) == np.bool_(False)
