import os
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

# Source images (URL or local path)
MOCKUP_URL = os.environ.get('MOCKUP_URL', 'assets/mockup.jpg')
DESIGN_URL = os.environ.get('DESIGN_URL', 'assets/design.png')
DISPLACEMENT_MAP_URL = os.environ.get('DISPLACEMENT_MAP_URL', 'assets/displacement.jpg')
DOWNLOAD_TIMEOUT = float(os.environ.get('DOWNLOAD_TIMEOUT', 30))

# Render Configuration
CANVAS_WIDTH = int(os.environ.get('CANVAS_WIDTH', 1000))
CANVAS_HEIGHT = int(os.environ.get('CANVAS_HEIGHT', 1000))
PIXEL_RATIO = float(os.environ.get('PIXEL_RATIO', 1.0))
RENDER_FPS = float(os.environ.get('RENDER_FPS', 60))

# Logging
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

# Flask Configuration
SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key')
DEBUG = os.environ.get('DEBUG', 'False').lower() == 'true'
PORT = int(os.environ.get('PORT', 5000))
