"""
Compositing Kernel - the per-pixel mockup/design composite.

Every output coordinate is evaluated independently, so the kernel is written
over whole coordinate arrays at once: numpy broadcasts each step across all
pixels and OpenCV does the bilinear texture fetches. Nothing here keeps
state between calls.

Sampling convention: texture fetches outside [0, 1] clamp to the edge
texels (see Texture.sample). An opaque design edge therefore streaks
outward; designs are expected to carry transparent borders.
"""

import numpy as np

from compositing.blend_modes import ShadingBlendModes


def canvas_uv(width, height):
    """
    UV coordinates of every output pixel center, origin bottom-left.

    Returns:
        Tuple (u, v) of float64 arrays with shape (height, width); row 0 is
        the top of the canvas.
    """
    xs = (np.arange(width, dtype=np.float64) + 0.5) / width
    ys = 1.0 - (np.arange(height, dtype=np.float64) + 0.5) / height
    u, v = np.meshgrid(xs, ys)
    return u, v


def rotate_uv(u, v, rotation, mid=0.5):
    """Rotate coordinates clockwise about (mid, mid) by `rotation` radians."""
    c = np.cos(rotation)
    s = np.sin(rotation)
    return (
        c * (u - mid) + s * (v - mid) + mid,
        c * (v - mid) - s * (u - mid) + mid,
    )


def design_coordinates(u, v, uniforms, displacement_vector):
    """
    Map canvas coordinates into design space.

    Offset, then scale about the center, then rotate about the center, then
    displace. The displacement is re-centered by subtracting the intensity.
    """
    translated_u = u - uniforms.offset_x
    translated_v = v - uniforms.offset_y

    scale_x, scale_y = uniforms.design_scale
    scaled_u = (translated_u - 0.5) * (1.0 / scale_x) + 0.5
    scaled_v = (translated_v - 0.5) * (1.0 / scale_y) + 0.5

    rotated_u, rotated_v = rotate_uv(scaled_u, scaled_v, uniforms.rotation)

    dx, dy = displacement_vector
    intensity = uniforms.displacement_intensity
    return (
        rotated_u + dx * intensity - intensity,
        rotated_v + dy * intensity - intensity,
    )


def composite(uv, mockup, design, displacement_map, uniforms):
    """
    Composite the design onto the mockup for every coordinate in `uv`.

    Args:
        uv: Tuple (u, v) of coordinate arrays in canvas space
        mockup: Texture of the mockup photograph
        design: Texture of the design (alpha = coverage)
        displacement_map: Texture whose red/green channels displace the design
        uniforms: Uniforms for this frame

    Returns:
        float32 array of shape u.shape + (4,), alpha always 1
    """
    u, v = uv

    # Position the mockup in render space; the displacement map shares its UVs
    mockup_u = u * uniforms.mockup_size[0] + uniforms.mockup_offset[0]
    mockup_v = v * uniforms.mockup_size[1] + uniforms.mockup_offset[1]

    if uniforms.displacement:
        displacement_texel = displacement_map.sample(mockup_u, mockup_v)
        displacement_vector = (displacement_texel[..., 0], displacement_texel[..., 1])
    else:
        zeros = np.zeros_like(u)
        displacement_vector = (zeros, zeros)

    design_u, design_v = design_coordinates(u, v, uniforms, displacement_vector)

    mockup_color = mockup.sample(mockup_u, mockup_v)
    design_color = design.sample(design_u, design_v)
    mockup_rgb = mockup_color[..., :3]

    if uniforms.multiply:
        rgb = ShadingBlendModes.multiply_blend(
            mockup_rgb, design_color, uniforms.multiply_intensity, uniforms.blend_opacity
        )
    else:
        rgb = ShadingBlendModes.normal_blend(mockup_rgb, design_color)

    return ShadingBlendModes.opaque(rgb.astype(np.float32))


def to_rgba8(frame):
    """Clamp a float frame to 0-1 and quantize it to uint8, like a framebuffer write."""
    return np.clip(np.rint(frame * 255.0), 0, 255).astype(np.uint8)
