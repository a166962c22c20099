import numpy as np
import pytest

from compositing.layout_solver import solve_layout
from compositing.texture import Texture
from compositing.transform_params import LiveParameters, compute_uniforms


def solid(width, height, rgba):
    """Texture filled with one float RGBA color."""
    pixels = np.empty((height, width, 4), dtype=np.float32)
    pixels[:, :] = rgba
    return Texture(pixels)


@pytest.fixture
def solid_texture():
    return solid


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_opaque(rng):
    def make(width, height):
        rgb = rng.random((height, width, 3), dtype=np.float32)
        return Texture.from_array(rgb)
    return make


@pytest.fixture
def identity_params():
    """Parameters that map canvas UV straight onto design UV for a square design."""
    return LiveParameters(
        multiply_enabled=False,
        displacement_enabled=False,
        displacement_intensity=0.0,
        multiply_intensity=0.0,
        blend_opacity=1.0,
        rotation_degrees=0.0,
        offset_x_pixels=0.0,
        offset_y_pixels=0.0,
        scale=1.0,
    )


@pytest.fixture
def square_fit():
    return solve_layout(8, 8, 8, 8, 8, 8)


@pytest.fixture
def uniforms_for(square_fit):
    def make(params, fit=None):
        return compute_uniforms(params, fit or square_fit)
    return make
