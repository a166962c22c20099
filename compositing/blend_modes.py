import numpy as np

# ==========================================
# SHADING BLEND MODES
# ==========================================

class ShadingBlendModes:
    """Vectorized blends of a sampled design over a sampled mockup."""

    @staticmethod
    def multiply_blend(mockup_rgb, design_rgba, multiply_intensity, opacity):
        """
        Multiply the design into the mockup so fabric shading shows through.

        Args:
            mockup_rgb: Mockup colors as float array (..., 3), values 0-1
            design_rgba: Design colors as float array (..., 4), values 0-1
            multiply_intensity: Brightness shift applied to the mockup before
                multiplying; negative values lighten the print
            opacity: Mix between the blended result (1.0) and the bare mockup (0.0)

        Returns:
            float array (..., 3)
        """
        design_rgb = design_rgba[..., :3]
        design_alpha = design_rgba[..., 3:4]

        blended = (mockup_rgb * (1.0 - design_alpha) +
                   (mockup_rgb - multiply_intensity) * design_rgb * design_alpha)

        return blended * opacity + mockup_rgb * (1.0 - opacity)

    @staticmethod
    def normal_blend(mockup_rgb, design_rgba):
        """
        Straight alpha blend of the design over the mockup.

        Args:
            mockup_rgb: Mockup colors as float array (..., 3), values 0-1
            design_rgba: Design colors as float array (..., 4), values 0-1

        Returns:
            float array (..., 3)
        """
        design_alpha = design_rgba[..., 3:4]
        return mockup_rgb * (1.0 - design_alpha) + design_rgba[..., :3] * design_alpha

    @staticmethod
    def opaque(rgb):
        """Attach a fully opaque alpha channel to an RGB array."""
        alpha = np.ones(rgb.shape[:-1] + (1,), dtype=rgb.dtype)
        return np.concatenate([rgb, alpha], axis=-1)
