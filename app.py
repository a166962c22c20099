import os
import logging
import traceback
from io import BytesIO
from flask import Flask, request, jsonify, send_file
from PIL import Image
from werkzeug.exceptions import HTTPException
import psutil

from compositing.errors import CompositingError
from compositing.mockup_engine import MockupEngine
from compositing.transform_params import PARAMETER_SPECS
from compositing.update_loop import UpdateLoop
from image_loader import ImageLoader
from config import (SECRET_KEY, DEBUG, PORT, LOG_LEVEL, MOCKUP_URL, DESIGN_URL,
                    DISPLACEMENT_MAP_URL, CANVAS_WIDTH, CANVAS_HEIGHT, PIXEL_RATIO, RENDER_FPS)

logger = logging.getLogger(__name__)


def build_update_loop():
    """Load the configured images and start rendering them."""
    loader = ImageLoader()
    mockup, design, displacement_map = loader.load_all(MOCKUP_URL, DESIGN_URL, DISPLACEMENT_MAP_URL)

    engine = MockupEngine(
        mockup,
        design,
        displacement_map,
        canvas_size=(CANVAS_WIDTH, CANVAS_HEIGHT),
        pixel_ratio=PIXEL_RATIO
    )
    loop = UpdateLoop(engine, fps=RENDER_FPS)
    loop.start()
    return loop


def create_app(loop=None):
    """
    Create the preview host.

    Args:
        loop: UpdateLoop to serve; when omitted the configured images are
            loaded and a new loop is started (blocking until they load)

    Returns:
        Flask app
    """
    app = Flask(__name__)
    app.secret_key = SECRET_KEY

    if loop is None:
        loop = build_update_loop()
    app.config['UPDATE_LOOP'] = loop

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        if not loop.healthy:
            return jsonify({
                'status': 'degraded',
                'message': 'Update loop is no longer rendering',
                'error': loop.last_error,
                'rendering': loop.running,
                'frame_number': loop.frame_number,
                'memory_usage_mb': get_memory_usage_mb()
            }), 503

        return jsonify({
            'status': 'healthy',
            'message': 'Mockup preview service is running',
            'rendering': loop.running,
            'frame_number': loop.frame_number,
            'memory_usage_mb': get_memory_usage_mb()
        })

    @app.route('/parameters', methods=['GET'])
    def get_parameters():
        """Current live parameters and their declared ranges"""
        return jsonify({
            'parameters': loop.parameters().to_dict(),
            'controls': {name: spec.to_dict() for name, spec in PARAMETER_SPECS.items()}
        })

    @app.route('/parameters', methods=['POST'])
    def set_parameters():
        """Update live parameters; numeric values are clamped to their range and step"""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'success': False, 'error': 'Expected a JSON object of parameters'}), 400

        unknown = sorted(name for name in data if name not in PARAMETER_SPECS)
        if unknown:
            return jsonify({'success': False, 'error': f"Unknown parameter(s): {', '.join(unknown)}"}), 400

        try:
            values = {name: PARAMETER_SPECS[name].coerce(value) for name, value in data.items()}
        except ValueError as e:
            return jsonify({'success': False, 'error': str(e)}), 400

        loop.set_parameters(**values)
        logger.info(f"Control surface set {values}")

        return jsonify({
            'success': True,
            'parameters': loop.parameters().to_dict()
        })

    @app.route('/layout', methods=['GET'])
    def layout_info():
        """Fit geometry for the loaded mockup and design"""
        engine = loop.engine
        return jsonify({
            'canvas_size': list(engine.canvas_size),
            'backing_size': list(engine.backing_size),
            'pixel_ratio': engine.pixel_ratio,
            'fit': engine.fit.to_dict()
        })

    @app.route('/frame', methods=['GET'])
    def latest_frame():
        """Most recently rendered frame as PNG"""
        frame = loop.latest_frame
        if frame is None:
            return jsonify({'success': False, 'error': 'No frame rendered yet'}), 503

        output_buffer = BytesIO()
        Image.fromarray(frame, 'RGBA').save(output_buffer, format='PNG')
        output_buffer.seek(0)
        return send_file(output_buffer, mimetype='image/png')

    @app.errorhandler(CompositingError)
    def handle_compositing_error(e):
        logger.error(f"Compositing error: {str(e)}")
        return jsonify({'success': False, 'error': f"{type(e).__name__}: {str(e)}"}), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return e
        logger.error(f"Error processing request: {str(e)}")
        logger.error(traceback.format_exc())
        return jsonify({'success': False, 'error': f"{type(e).__name__}: {str(e)}"}), 500

    return app


def get_memory_usage_mb():
    """Get current memory usage in MB"""
    process = psutil.Process(os.getpid())
    return process.memory_info().rss / (1024 * 1024)


if __name__ == '__main__':
    # Configure logging
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info("Starting Mockup Preview")
    logger.info(f"Debug mode: {DEBUG}")
    logger.info(f"Port: {PORT}")

    app = create_app()
    logger.info(f"Initial memory usage: {get_memory_usage_mb():.2f}MB")

    # The reloader would start a second render loop
    app.run(
        host='0.0.0.0',
        port=PORT,
        debug=DEBUG,
        use_reloader=False
    )
