"""
BloomSense - Main Entry Point.
=============================

This module serves as the central bootloader for BloomSense.
It wires the two independent loops that share the Signal Bus:
1. Detection Loop (worker thread): Camera -> MediaPipe -> GesturePipeline -> Bus.
2. Render Loop (main thread): Bus snapshot -> SceneAnimator + HUD -> Window.

The render loop never waits on detection. If MediaPipe is slower than the
display, the scene simply reads the last committed snapshot again.

Usage:
    $ python -m bloomsense.main
"""
import logging
import threading
import time
from typing import Optional, Tuple

import cv2
import numpy as np

from bloomsense.config import CONFIG, PATHS, init_environment
from bloomsense.control.controller import GesturePipeline
from bloomsense.core.interfaces import ILandmarkDetector
from bloomsense.core.recorder import SignalRecorder
from bloomsense.core.signal_bus import SignalBus
from bloomsense.scene.animator import SceneAnimator
from bloomsense.ui.hud import HUD
from bloomsense.vision.mediapipe_detector import MediaPipeDetector

logger = logging.getLogger(__name__)


class ThreadedCamera:
    """
    High-Performance Camera Reader.

    Standard cv2.VideoCapture.read() is blocking. This class runs the camera I/O
    in a daemon thread so both loops always get the *freshest* frame (O(1) access).
    Frames are flipped once here (mirror view) so MediaPipe's handedness labels
    match the user's real hands.
    """
    def __init__(self, src: int = 0):
        self.cap = cv2.VideoCapture(src)
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, CONFIG["CAPTURE_WIDTH"])
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, CONFIG["CAPTURE_HEIGHT"])
        self.cap.set(cv2.CAP_PROP_FPS, CONFIG.get("TARGET_FPS", 30))

        self.ret, self.frame = False, None
        self.frame_id = 0
        self.running = True
        self.lock = threading.Lock()

        threading.Thread(target=self._reader, daemon=True).start()

    def _reader(self):
        """Background thread loop for frame grabbing."""
        while self.running:
            ret, frame = self.cap.read()
            if not ret:
                logger.error("❌ Camera stopped delivering frames")
                self.running = False
                break
            frame = cv2.flip(frame, 1)
            with self.lock:
                self.ret, self.frame = ret, frame
                self.frame_id += 1

    def read(self) -> Tuple[bool, Optional[np.ndarray], int]:
        """Returns the most recent frame and its sequence number. Non-blocking."""
        with self.lock:
            frame = self.frame.copy() if self.frame is not None else None
            return self.ret, frame, self.frame_id

    def release(self):
        """Safely stops the thread and releases hardware."""
        self.running = False
        self.cap.release()


class DetectionWorker:
    """
    The detector "callback" loop. Runs serially on its own thread, so the pipeline
    is never re-entered. Frames the detector cannot keep up with are dropped here,
    upstream of the pipeline.
    """
    def __init__(self, camera: ThreadedCamera, detector: ILandmarkDetector, pipeline: GesturePipeline):
        self.camera = camera
        self.detector = detector
        self.pipeline = pipeline
        self.running = False
        self.detect_fps = 0.0
        self._last_seen = -1
        self._thread: Optional[threading.Thread] = None

    def start(self):
        self.running = True
        self._thread = threading.Thread(target=self._loop, daemon=True)
        self._thread.start()

    def _loop(self):
        prev = time.monotonic()
        while self.running:
            ret, frame, frame_id = self.camera.read()
            if not ret or frame is None or frame_id == self._last_seen:
                time.sleep(0.002)
                continue
            self._last_seen = frame_id

            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            now = time.monotonic()
            try:
                self.pipeline.run_detector(self.detector, rgb, now)
            except Exception:
                # A pipeline bug must not kill detection: the bus keeps its last frame
                logger.exception("❌ Pipeline error, skipping frame")

            dt = now - prev
            prev = now
            if dt > 0:
                self.detect_fps = 0.9 * self.detect_fps + 0.1 * (1.0 / dt)

    def stop(self, timeout: float = 2.0) -> bool:
        """Returns True once the loop has exited (the detector is free to close)."""
        self.running = False
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return True


def main():
    """
    Main Render Loop.
    """
    # 1. Boot Sequence
    init_environment()
    print("🌸 BLOOMSENSE: ONLINE")
    print("   -> Press 'ESC' to Exit")
    print("   -> Press 'G' to Toggle Gates")
    print("   -> Press 'V' to Toggle Visuals")
    print("   -> Press 'R' to Reset Signals")
    print("   -> Press 'T' to Start/Stop Trace Recording")

    # 2. Initialize Subsystems
    bus = SignalBus()
    pipeline = GesturePipeline(bus)
    scene = SceneAnimator(bus)
    hud = HUD()
    recorder = SignalRecorder()
    recording = False

    cam = ThreadedCamera(CONFIG["CAMERA_INDEX"])
    detector = MediaPipeDetector()
    worker = DetectionWorker(cam, detector, pipeline)

    window_name = "BloomSense"
    cv2.namedWindow(window_name)

    # Warmup time for auto-exposure cameras
    time.sleep(1.0)
    worker.start()

    prev_time = time.monotonic()
    last_recorded = 0
    show_visuals = True

    try:
        while cam.running:
            ret, frame, _ = cam.read()
            if not ret or frame is None:
                time.sleep(0.005)
                continue

            now = time.monotonic()
            dt = now - prev_time
            prev_time = now

            # --- 1. READ (one consistent snapshot per render frame) ---
            snapshot = bus.snapshot()

            # --- 2. FEEDBACK (HUD peeks, never consumes) ---
            if show_visuals:
                hud.render(frame, snapshot, pipeline.last_frame, pipeline.gates)

            # --- 3. SCENE (canonical swipe consumer) ---
            scene.on_render(snapshot, dt)

            # --- 4. TRACE ---
            if recording and snapshot.frame_id != last_recorded:
                recorder.record(now, snapshot, pipeline.last_targets)
                last_recorded = snapshot.frame_id

            fps = 1 / dt if dt > 0 else 0
            hud.draw_fps(frame, fps, worker.detect_fps)
            cv2.imshow(window_name, frame)

            # Input Handling
            k = cv2.waitKey(1) & 0xFF
            if k == 27: break  # ESC
            elif k == ord('g'): hud.toggle_gates()
            elif k == ord('v'): show_visuals = not show_visuals
            elif k == ord('r'):
                pipeline.reset()
                print("♻️ SIGNALS RESET")
            elif k == ord('t'):
                recording = not recording
                if not recording and len(recorder):
                    recorder.save(PATHS["TRACES_DIR"] / f"trace_{int(time.time())}.csv")
                    recorder.clear()
                print(f"⏺️ RECORDING {'ON' if recording else 'OFF'}")

    finally:
        # Graceful Shutdown
        if worker.stop():
            detector.close()
        else:
            logger.warning("⚠️ Detection thread still busy, leaving the detector open")
        cam.release()
        cv2.destroyAllWindows()
        if len(recorder):
            recorder.save(PATHS["TRACES_DIR"] / f"trace_{int(time.time())}.csv")
        print("🔴 SYSTEM OFFLINE")


if __name__ == "__main__":
    main()
