"""
Parameter Update Loop - re-renders the preview once per display refresh.

Each tick snapshots the LiveParameters, derives Uniforms, renders one full
frame and publishes it. Ticks run back to back at the configured rate on a
dedicated render thread until stop() is called; a late tick is rendered
late, never dropped.
"""

import logging
import threading
import time
import traceback

from compositing.transform_params import PARAMETER_SPECS, LiveParameters

logger = logging.getLogger(__name__)


class UpdateLoop:
    """Owns the live parameters and drives the engine frame by frame."""

    def __init__(self, engine, params=None, fps=60, on_frame=None):
        if not fps > 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.engine = engine
        self.fps = fps
        self.on_frame = on_frame

        self._params = params if params is not None else LiveParameters()
        self._params_lock = threading.Lock()
        self._frame_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = None
        self._started = False
        self.last_error = None

        self._latest_frame = None
        self._frame_number = 0

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    @property
    def healthy(self):
        """False once a started loop has died or a tick has failed."""
        if self.last_error is not None:
            return False
        return self.running or not self._started or self._stop_event.is_set()

    @property
    def latest_frame(self):
        with self._frame_lock:
            return self._latest_frame

    @property
    def frame_number(self):
        with self._frame_lock:
            return self._frame_number

    def parameters(self):
        """Return a copy of the current live parameters."""
        with self._params_lock:
            return self._params.snapshot()

    def set_parameters(self, **values):
        """
        Write path for the control surface. Takes effect on the next tick.

        Values are type checked but not clamped; range and step are the
        control surface's job.

        Raises:
            KeyError: for an unknown parameter name
            ValueError: for a value of the wrong type
        """
        for name, value in values.items():
            if name not in PARAMETER_SPECS:
                raise KeyError(f"Unknown parameter: {name}")
            PARAMETER_SPECS[name].check(value)

        with self._params_lock:
            self._params.update(**values)
        logger.debug(f"Parameters updated: {values}")

    def tick(self):
        """Render one frame from the current parameters and publish it."""
        with self._params_lock:
            snapshot = self._params.snapshot()

        frame = self.engine.render_parameters(snapshot)

        with self._frame_lock:
            self._latest_frame = frame
            self._frame_number += 1

        if self.on_frame is not None:
            self.on_frame(frame)

        return frame

    def start(self):
        if self.running:
            logger.warning("Update loop already running")
            return

        self._stop_event.clear()
        self.last_error = None
        self._started = True
        self._thread = threading.Thread(target=self._run, name='update-loop', daemon=True)
        self._thread.start()
        logger.info(f"Update loop started at {self.fps} fps")

    def stop(self, timeout=5.0):
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            self._thread = None
        logger.info(f"Update loop stopped after {self.frame_number} frames")

    def _run(self):
        period = 1.0 / self.fps
        next_tick = time.monotonic()

        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error rendering frame: {str(e)}")
                logger.error(traceback.format_exc())
                self.last_error = f"{type(e).__name__}: {str(e)}"
                self._stop_event.set()
                break

            next_tick += period
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Behind schedule: render the next frame right away and
                # restart the schedule from now
                next_tick = time.monotonic()
                delay = 0
            self._stop_event.wait(delay)
