"""
Transform Parameters - user-facing controls and their per-frame normalization.

LiveParameters holds what the control surface edits (degrees, pixels, a 0-1
scale). compute_uniforms() turns a snapshot of it, plus the FitGeometry,
into the normalized Uniforms the compositing kernel reads.
"""

import math
import numbers

import numpy as np

# Offsets are expressed against the 1000px reference canvas.
OFFSET_REFERENCE_PIXELS = 1000.0

# Smallest design scale component handed to the kernel (it divides by it).
MIN_DESIGN_SCALE = 1e-6


class ParameterSpec:
    """Declared range and step of one control-surface parameter."""

    def __init__(self, name, kind, minimum=None, maximum=None, step=None):
        self.name = name
        self.kind = kind
        self.minimum = minimum
        self.maximum = maximum
        self.step = step

    def clamp(self, value):
        """Clamp a numeric value into range and snap it to the step grid."""
        if self.kind == 'bool':
            return bool(value)

        value = min(max(float(value), self.minimum), self.maximum)
        steps = round((value - self.minimum) / self.step)
        snapped = self.minimum + steps * self.step
        # Round off float noise from the step multiplication (0.1 + 0.2 etc.)
        snapped = round(snapped, 10)
        return min(max(snapped, self.minimum), self.maximum)

    def check(self, value):
        """
        Validate the type of a value without clamping it.

        Raises:
            ValueError: if the value has the wrong type for this parameter
        """
        if self.kind == 'bool':
            if not isinstance(value, (bool, np.bool_)):
                raise ValueError(f"{self.name} expects a boolean, got {value!r}")
            return value

        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise ValueError(f"{self.name} expects a number, got {value!r}")
        if math.isnan(value):
            raise ValueError(f"{self.name} expects a number, got NaN")
        return value

    def coerce(self, value):
        """Validate a raw control-surface value and clamp it to range and step."""
        value = self.check(value)
        if self.kind == 'bool':
            return bool(value)
        return self.clamp(value)

    def to_dict(self):
        if self.kind == 'bool':
            return {'type': 'bool'}
        return {
            'type': 'float',
            'min': self.minimum,
            'max': self.maximum,
            'step': self.step,
        }


PARAMETER_SPECS = {
    'multiply_enabled': ParameterSpec('multiply_enabled', 'bool'),
    'displacement_enabled': ParameterSpec('displacement_enabled', 'bool'),
    'displacement_intensity': ParameterSpec('displacement_intensity', 'float', 0.0, 0.02, 0.001),
    'multiply_intensity': ParameterSpec('multiply_intensity', 'float', -0.5, 0.5, 0.05),
    'blend_opacity': ParameterSpec('blend_opacity', 'float', 0.0, 1.0, 0.05),
    'rotation_degrees': ParameterSpec('rotation_degrees', 'float', -10.0, 10.0, 0.5),
    'offset_x_pixels': ParameterSpec('offset_x_pixels', 'float', -200.0, 200.0, 1.0),
    'offset_y_pixels': ParameterSpec('offset_y_pixels', 'float', -200.0, 200.0, 1.0),
    'scale': ParameterSpec('scale', 'float', 0.0, 1.0, 0.01),
}


class LiveParameters:
    """Mutable user-controlled parameters, read once per frame."""

    FIELDS = tuple(PARAMETER_SPECS)

    def __init__(self, multiply_enabled=True, displacement_enabled=True,
                 displacement_intensity=0.012, multiply_intensity=-0.15,
                 blend_opacity=0.95, rotation_degrees=-5.0, offset_x_pixels=17.0,
                 offset_y_pixels=70.0, scale=0.45):
        self.multiply_enabled = multiply_enabled
        self.displacement_enabled = displacement_enabled
        self.displacement_intensity = displacement_intensity
        self.multiply_intensity = multiply_intensity
        self.blend_opacity = blend_opacity
        self.rotation_degrees = rotation_degrees
        self.offset_x_pixels = offset_x_pixels
        self.offset_y_pixels = offset_y_pixels
        self.scale = scale

    def update(self, **values):
        unknown = [name for name in values if name not in self.FIELDS]
        if unknown:
            raise KeyError(f"Unknown parameter(s): {', '.join(sorted(unknown))}")
        for name, value in values.items():
            setattr(self, name, value)

    def snapshot(self):
        return LiveParameters(**self.to_dict())

    def to_dict(self):
        return {name: getattr(self, name) for name in self.FIELDS}

    def __eq__(self, other):
        if not isinstance(other, LiveParameters):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"LiveParameters({self.to_dict()})"


class Uniforms:
    """Normalized per-frame values consumed by the compositing kernel."""

    __slots__ = ('multiply', 'displacement', 'displacement_intensity', 'multiply_intensity',
                 'blend_opacity', 'design_scale', 'rotation', 'offset_x', 'offset_y',
                 'mockup_size', 'mockup_offset')

    def __init__(self, multiply, displacement, displacement_intensity, multiply_intensity,
                 blend_opacity, design_scale, rotation, offset_x, offset_y,
                 mockup_size, mockup_offset):
        self.multiply = multiply
        self.displacement = displacement
        self.displacement_intensity = displacement_intensity
        self.multiply_intensity = multiply_intensity
        self.blend_opacity = blend_opacity
        self.design_scale = design_scale
        self.rotation = rotation
        self.offset_x = offset_x
        self.offset_y = offset_y
        self.mockup_size = mockup_size
        self.mockup_offset = mockup_offset

    def to_dict(self):
        return {name: getattr(self, name) for name in self.__slots__}

    def __repr__(self):
        return f"Uniforms({self.to_dict()})"


def design_scale(fit, scale):
    return (fit.design_area_width * scale, fit.design_area_height * scale)


def rotation_radians(degrees):
    return (degrees / 360) * math.pi * 2


def offset_fraction(pixels):
    return pixels / OFFSET_REFERENCE_PIXELS


def compute_uniforms(params, fit):
    """
    Derive the kernel uniforms from a parameter snapshot and a fit.

    Neither argument is modified. A zero design scale is raised to
    MIN_DESIGN_SCALE per axis so the kernel's divide stays finite.
    """
    scale_x, scale_y = design_scale(fit, params.scale)
    return Uniforms(
        multiply=bool(params.multiply_enabled),
        displacement=bool(params.displacement_enabled),
        displacement_intensity=float(params.displacement_intensity),
        multiply_intensity=float(params.multiply_intensity),
        blend_opacity=float(params.blend_opacity),
        design_scale=(max(scale_x, MIN_DESIGN_SCALE), max(scale_y, MIN_DESIGN_SCALE)),
        rotation=rotation_radians(params.rotation_degrees),
        offset_x=offset_fraction(params.offset_x_pixels),
        offset_y=offset_fraction(params.offset_y_pixels),
        mockup_size=fit.mockup_size,
        mockup_offset=fit.mockup_offset,
    )
