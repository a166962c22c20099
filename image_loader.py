import logging
import requests
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from PIL import Image

from compositing.errors import ImageLoadError
from compositing.texture import Texture
from config import DOWNLOAD_TIMEOUT

logger = logging.getLogger(__name__)


class ImageLoader:
    """Fetches and decodes the mockup, design and displacement map images."""

    def __init__(self, timeout=DOWNLOAD_TIMEOUT):
        self.timeout = timeout

    @staticmethod
    def is_url(locator):
        return locator.startswith('http://') or locator.startswith('https://')

    def download_file(self, url):
        """Download a file from a URL and return as BytesIO"""
        try:
            logger.info(f"Downloading file from: {url}")
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
            logger.info(f"Successfully downloaded {len(response.content)} bytes")
            return BytesIO(response.content)
        except Exception as e:
            logger.error(f"Error downloading file: {str(e)}")
            raise

    def fetch(self, locator):
        """
        Fetch a single image and decode it into a Texture.

        Args:
            locator: http(s) URL or local file path

        Returns:
            Texture
        """
        source = self.download_file(locator) if self.is_url(locator) else locator

        with Image.open(source) as img:
            img.load()
            logger.info(f"Decoded {locator}: size {img.size}, format {img.format}, mode {img.mode}")
            return Texture.from_pil(img)

    def load_all(self, mockup, design, displacement_map):
        """
        Load all three source images concurrently.

        Blocks until every image has resolved. The first failure (in
        mockup, design, displacement map order) is raised as ImageLoadError;
        nothing is returned unless all three succeed.

        Returns:
            Tuple of (mockup, design, displacement_map) Textures
        """
        locators = [
            ('mockup', mockup),
            ('design', design),
            ('displacement map', displacement_map),
        ]

        with ThreadPoolExecutor(max_workers=len(locators)) as executor:
            futures = [(role, locator, executor.submit(self.fetch, locator))
                       for role, locator in locators]

            textures = []
            for role, locator, future in futures:
                try:
                    textures.append(future.result())
                except Exception as e:
                    logger.error(f"Failed to load {role} image from {locator}: {str(e)}")
                    raise ImageLoadError(role, locator, e) from e

        logger.info("All source images loaded")
        return tuple(textures)
