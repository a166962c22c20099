"""
Mockup Engine - live displacement mockup rendering

This module ties the compositing pieces together:
- Layout solving for the mockup/design pair (once per image set)
- Canvas coordinate grid at the physical backing resolution
- One full-canvas composite per render call

The engine holds only immutable image data and derived geometry; all
per-frame inputs arrive through Uniforms.
"""

import logging
import time
from PIL import Image

from compositing.errors import DegenerateGeometryError
from compositing.kernel import canvas_uv, composite, to_rgba8
from compositing.layout_solver import LayoutSolver
from compositing.transform_params import compute_uniforms

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_SIZE = (1000, 1000)


class Scene:
    """Source images and the layout solved for them, swapped as one unit."""

    __slots__ = ('mockup', 'design', 'displacement_map', 'fit')

    def __init__(self, mockup, design, displacement_map, fit):
        self.mockup = mockup
        self.design = design
        self.displacement_map = displacement_map
        self.fit = fit


class MockupEngine:
    """
    Main rendering engine for the design-on-mockup preview.

    The logical canvas (default 1000x1000) defines UV space and the layout
    solve. The pixel ratio only scales the backing raster the kernel is
    evaluated over; it never changes logical coordinates.
    """

    def __init__(self, mockup, design, displacement_map,
                 canvas_size=DEFAULT_CANVAS_SIZE, pixel_ratio=1.0):
        canvas_width, canvas_height = canvas_size
        if canvas_width <= 0 or canvas_height <= 0:
            raise DegenerateGeometryError(f"Canvas must have positive size, got {canvas_size}")
        if not pixel_ratio > 0:
            raise DegenerateGeometryError(f"Pixel ratio must be positive, got {pixel_ratio}")

        self.canvas_size = (canvas_width, canvas_height)
        self.pixel_ratio = pixel_ratio
        self.backing_size = (
            max(1, int(round(canvas_width * pixel_ratio))),
            max(1, int(round(canvas_height * pixel_ratio)))
        )
        self.uv = canvas_uv(*self.backing_size)

        logger.info(f"Mockup engine canvas {self.canvas_size[0]}x{self.canvas_size[1]} "
                    f"(backing {self.backing_size[0]}x{self.backing_size[1]}, ratio {pixel_ratio})")

        self._scene = None
        self.replace_images(mockup, design, displacement_map)

    def replace_images(self, mockup, design, displacement_map):
        """Swap the source images and re-solve the layout for them."""
        fit = LayoutSolver.for_textures(mockup, design, self.canvas_size)

        # One assignment, so a frame never mixes old and new images
        self._scene = Scene(mockup, design, displacement_map, fit)

        logger.info(f"Loaded images: mockup {mockup!r}, design {design!r}, "
                    f"displacement map {displacement_map!r}")

    @property
    def scene(self):
        return self._scene

    @property
    def mockup(self):
        return self._scene.mockup

    @property
    def design(self):
        return self._scene.design

    @property
    def displacement_map(self):
        return self._scene.displacement_map

    @property
    def fit(self):
        return self._scene.fit

    def uniforms(self, params):
        return compute_uniforms(params, self.fit)

    def render_float(self, uniforms, scene=None):
        """Evaluate the kernel over the backing raster, returning float RGBA."""
        if scene is None:
            scene = self._scene
        return composite(self.uv, scene.mockup, scene.design, scene.displacement_map, uniforms)

    def render(self, uniforms, scene=None):
        """
        Render one full-canvas frame.

        Args:
            uniforms: Uniforms for this frame
            scene: Scene to draw; defaults to the current one

        Returns:
            uint8 numpy array (backing_height, backing_width, 4), alpha 255
        """
        start = time.perf_counter()
        frame = to_rgba8(self.render_float(uniforms, scene))
        logger.debug(f"Rendered frame in {(time.perf_counter() - start) * 1000:.1f}ms")
        return frame

    def render_image(self, uniforms):
        return Image.fromarray(self.render(uniforms), 'RGBA')

    def render_parameters(self, params):
        """Render a parameter snapshot against one consistent scene."""
        scene = self._scene
        return self.render(compute_uniforms(params, scene.fit), scene)
