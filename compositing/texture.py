import numpy as np
import cv2
from PIL import Image

from compositing.errors import DegenerateGeometryError

# cv2.remap requires every source and destination side to be below SHRT_MAX
MAX_REMAP_SIDE = 32766


class Texture:
    """
    Immutable RGBA image sampled with normalized UV coordinates.

    Pixels are stored as float32 in the 0-1 range with shape (height, width, 4),
    row 0 being the top of the image. UV space has its origin at the
    bottom-left, so the image top sits at v = 1 (the image is flipped on
    upload, like a GPU texture).

    Sampling is bilinear with no mipmapping. Coordinates outside [0, 1]
    clamp to the edge texels: the border row/column is repeated outward.
    """

    def __init__(self, pixels):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Texture pixels must have shape (H, W, 4), got {pixels.shape}")

        height, width = pixels.shape[:2]
        if width <= 0 or height <= 0:
            raise DegenerateGeometryError(f"Texture has zero area: {width}x{height}")
        if width > MAX_REMAP_SIDE or height > MAX_REMAP_SIDE:
            raise DegenerateGeometryError(
                f"Texture is too large to sample: {width}x{height} (max {MAX_REMAP_SIDE} per side)"
            )

        self._pixels = np.ascontiguousarray(pixels, dtype=np.float32)
        self.width = width
        self.height = height

    @property
    def pixels(self):
        return self._pixels

    @property
    def size(self):
        return (self.width, self.height)

    @property
    def aspect_ratio(self):
        return self.width / self.height

    @classmethod
    def from_pil(cls, image):
        """Convert a PIL Image of any mode to a float32 RGBA texture."""
        if image.width <= 0 or image.height <= 0:
            raise DegenerateGeometryError(f"Image has zero area: {image.width}x{image.height}")

        if image.mode != 'RGBA':
            image = image.convert('RGBA')

        img_array = np.array(image).astype(np.float32) / 255.0
        return cls(img_array)

    @classmethod
    def from_array(cls, array):
        """
        Build a texture from a numpy array.

        Args:
            array: (H, W, 3) or (H, W, 4) array; uint8 arrays are treated as
                0-255, float arrays as 0-1. Missing alpha is set to opaque.

        Returns:
            Texture
        """
        array = np.asarray(array)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3) or (H, W, 4) array, got {array.shape}")
        if array.shape[0] == 0 or array.shape[1] == 0:
            raise DegenerateGeometryError(f"Array has zero area: {array.shape}")

        if array.dtype == np.uint8:
            rgba = array.astype(np.float32) / 255.0
        else:
            rgba = array.astype(np.float32)

        if rgba.shape[2] == 3:
            alpha = np.ones(rgba.shape[:2] + (1,), dtype=np.float32)
            rgba = np.concatenate([rgba, alpha], axis=2)

        return cls(rgba)

    def to_pil(self):
        """Convert back to an 8-bit RGBA PIL Image."""
        img_array = np.clip(np.rint(self._pixels * 255.0), 0, 255).astype(np.uint8)
        return Image.fromarray(img_array, 'RGBA')

    def sample(self, u, v):
        """
        Bilinearly sample the texture at UV coordinates.

        Args:
            u: Array of horizontal coordinates (0 = left edge, 1 = right edge)
            v: Array of vertical coordinates (0 = bottom edge, 1 = top edge)

        Returns:
            float32 array of shape u.shape + (4,)
        """
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        out_shape = u.shape

        # Texel centers sit at (i + 0.5) / size
        map_x = u * self.width - 0.5
        map_y = (1.0 - v) * self.height - 0.5

        # Anything past the first outside texel samples the edge anyway;
        # clipping keeps the fixed-point conversion inside remap in range.
        map_x = np.clip(map_x, -1.0, self.width).astype(np.float32)
        map_y = np.clip(map_y, -1.0, self.height).astype(np.float32)

        if map_x.ndim == 2 and max(map_x.shape) <= MAX_REMAP_SIDE:
            sampled = self._remap(map_x, map_y)
        else:
            # Flatten and sample in single-row chunks remap can take
            flat_x = map_x.reshape(1, -1)
            flat_y = map_y.reshape(1, -1)
            chunks = [
                self._remap(flat_x[:, start:start + MAX_REMAP_SIDE], flat_y[:, start:start + MAX_REMAP_SIDE])
                for start in range(0, flat_x.shape[1], MAX_REMAP_SIDE)
            ]
            if chunks:
                sampled = np.concatenate(chunks, axis=1)
            else:
                sampled = np.empty((1, 0, 4), dtype=np.float32)

        return sampled.reshape(out_shape + (4,))

    def _remap(self, map_x, map_y):
        sampled = cv2.remap(
            self._pixels,
            np.ascontiguousarray(map_x),
            np.ascontiguousarray(map_y),
            interpolation=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_REPLICATE
        )
        return sampled.reshape(map_x.shape + (4,))

    def __repr__(self):
        return f"Texture({self.width}x{self.height})"
