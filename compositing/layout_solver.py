"""
Layout Solver - fits the mockup and design into the fixed render canvas.

The mockup always covers the canvas: whichever axis is relatively longer
overflows and is cropped symmetrically. The design area is expressed as a
fraction of the canvas, before the user's scale control is applied.

    equal   ▓▓ « ▓▓      mockup fills the canvas exactly
    wider   ▓▓ « ▓▓▓▓    mockup height fills the canvas, width overflows
    taller  ▓▓ « ▓       mockup width fills the canvas, height overflows
"""

import logging

from compositing.errors import DegenerateGeometryError

logger = logging.getLogger(__name__)

CASE_EQUAL = 'equal'
CASE_WIDER = 'wider'
CASE_TALLER = 'taller'


class FitGeometry:
    """Result of a layout solve. Depends only on image and canvas dimensions."""

    __slots__ = ('case', 'mockup_width', 'mockup_height', 'mockup_size',
                 'mockup_offset', 'design_area_width', 'design_area_height')

    def __init__(self, case, mockup_width, mockup_height, mockup_size, mockup_offset,
                 design_area_width, design_area_height):
        self.case = case
        self.mockup_width = mockup_width
        self.mockup_height = mockup_height
        self.mockup_size = mockup_size
        self.mockup_offset = mockup_offset
        self.design_area_width = design_area_width
        self.design_area_height = design_area_height

    def to_dict(self):
        return {
            'case': self.case,
            'mockup_width': self.mockup_width,
            'mockup_height': self.mockup_height,
            'mockup_size': list(self.mockup_size),
            'mockup_offset': list(self.mockup_offset),
            'design_area_width': self.design_area_width,
            'design_area_height': self.design_area_height,
        }

    def __eq__(self, other):
        if not isinstance(other, FitGeometry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"FitGeometry(case={self.case!r}, mockup_size={self.mockup_size}, "
                f"mockup_offset={self.mockup_offset}, "
                f"design_area=({self.design_area_width}, {self.design_area_height}))")


def solve_layout(mockup_width, mockup_height, design_width, design_height,
                 canvas_width, canvas_height):
    """
    Compute mockup coverage/offset and design area fractions for a canvas.

    Args:
        mockup_width, mockup_height: Mockup image dimensions in pixels
        design_width, design_height: Design image dimensions in pixels
        canvas_width, canvas_height: Render canvas dimensions in logical pixels

    Returns:
        FitGeometry
    """
    dimensions = {
        'mockup_width': mockup_width,
        'mockup_height': mockup_height,
        'design_width': design_width,
        'design_height': design_height,
        'canvas_width': canvas_width,
        'canvas_height': canvas_height,
    }
    for name, value in dimensions.items():
        if not value > 0:
            error_msg = f"{name} must be positive, got {value}"
            logger.error(error_msg)
            raise DegenerateGeometryError(error_msg)

    mockup_aspect_ratio = mockup_width / mockup_height
    render_aspect_ratio = canvas_width / canvas_height
    design_aspect_ratio = design_width / design_height

    if mockup_aspect_ratio == render_aspect_ratio:
        case = CASE_EQUAL
        mW = canvas_width
        mH = canvas_height
        dH = 1.0  # full mockup height is available to the design
        dW = (canvas_height * design_aspect_ratio) / canvas_width
    elif mockup_aspect_ratio > render_aspect_ratio:
        case = CASE_WIDER
        mW = canvas_height * mockup_aspect_ratio
        mH = canvas_height
        dH = 1.0
        dW = (canvas_height * design_aspect_ratio) / canvas_width
    else:
        case = CASE_TALLER
        mW = canvas_width
        mH = canvas_width / mockup_aspect_ratio
        # More than the full canvas height: part of the mockup is off screen
        dH = mH / canvas_height
        dW = (mH * design_aspect_ratio) / canvas_width

    mockup_size = (canvas_width / mW, canvas_height / mH)
    mockup_offset = ((1 - mockup_size[0]) / 2, (1 - mockup_size[1]) / 2)

    fit = FitGeometry(case, mW, mH, mockup_size, mockup_offset, dW, dH)
    logger.info(f"Solved layout ({case}): mockup {mockup_width}x{mockup_height}, "
                f"design {design_width}x{design_height}, canvas {canvas_width}x{canvas_height} -> {fit}")
    return fit


class LayoutSolver:
    """Solves layouts for loaded textures."""

    @staticmethod
    def for_textures(mockup, design, canvas_size):
        canvas_width, canvas_height = canvas_size
        return solve_layout(mockup.width, mockup.height, design.width, design.height,
                            canvas_width, canvas_height)
