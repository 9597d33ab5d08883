import cv2
import sys
import os
import time
import copy

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from bloomsense.config import CONFIG, CHANNEL_POLICIES, PATHS, init_environment
from bloomsense.control.controller import GesturePipeline
from bloomsense.core.recorder import SignalRecorder
from bloomsense.core.types import SCALAR_CHANNELS
from bloomsense.vision.mediapipe_detector import MediaPipeDetector

WINDOW = "Signal Lab"
HISTORY = 200


def build_pipeline(channel_name, rise, fall, decay):
    """Fresh pipeline with one channel's policy overridden by the sliders."""
    policies = copy.deepcopy(CHANNEL_POLICIES)
    policies[channel_name].update({"rise": rise, "fall": fall, "decay": decay})
    return GesturePipeline(policies=policies)


def draw_plot(frame, raw_hist, smooth_hist, origin, size):
    x0, y0 = origin
    w, h = size
    cv2.rectangle(frame, (x0, y0), (x0 + w, y0 + h), (40, 40, 40), -1)
    step = w / max(1, HISTORY - 1)
    for hist, color in ((raw_hist, (120, 120, 120)), (smooth_hist, (0, 255, 0))):
        pts = [(int(x0 + i * step), int(y0 + h - v * h)) for i, v in enumerate(hist) if v is not None]
        for a, b in zip(pts, pts[1:]):
            cv2.line(frame, a, b, color, 1)


def run_lab():
    init_environment()
    print("🎛️ SIGNAL LAB (Smoothing Layer)")
    print("   -> Tune rise / fall / decay of one channel live.")
    print("   -> Grey = Raw Metric | Green = Smoothed Channel")
    print("   -> [N] next channel, [T] toggle recording, [ESC] quit")

    cv2.namedWindow(WINDOW, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW, 1000, 700)

    def nothing(x): pass

    channel_idx = 0
    channel = SCALAR_CHANNELS[channel_idx]
    policy = CHANNEL_POLICIES[channel.value]
    # Rates: 1 to 100 (0.01 to 1.00). Decay: 1 to 99.
    cv2.createTrackbar("RISE (%)", WINDOW, int(policy["rise"] * 100), 100, nothing)
    cv2.createTrackbar("FALL (%)", WINDOW, int(policy["fall"] * 100), 100, nothing)
    cv2.createTrackbar("DECAY (%)", WINDOW, int(policy["decay"] * 100), 99, nothing)

    cam = cv2.VideoCapture(CONFIG["CAMERA_INDEX"])
    detector = MediaPipeDetector()
    recorder = SignalRecorder()
    recording = False

    current = None
    pipeline = None
    raw_hist, smooth_hist = [], []

    while True:
        rise = max(1, cv2.getTrackbarPos("RISE (%)", WINDOW)) / 100.0
        fall = max(1, cv2.getTrackbarPos("FALL (%)", WINDOW)) / 100.0
        decay = max(1, cv2.getTrackbarPos("DECAY (%)", WINDOW)) / 100.0

        # Rebuild only when a slider moved (keeps the swipe/smoothing state otherwise)
        if current != (channel, rise, fall, decay):
            pipeline = build_pipeline(channel.value, rise, fall, decay)
            current = (channel, rise, fall, decay)

        ret, frame = cam.read()
        if not ret: break
        frame = cv2.flip(frame, 1)
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

        now = time.monotonic()
        pipeline.run_detector(detector, rgb, now)
        snap = pipeline.snapshot()

        raw_hist.append(pipeline.last_targets.get(channel))
        smooth_hist.append(snap.value(channel))
        raw_hist, smooth_hist = raw_hist[-HISTORY:], smooth_hist[-HISTORY:]

        if recording:
            recorder.record(now, snap, pipeline.last_targets)

        h, w, _ = frame.shape
        draw_plot(frame, raw_hist, smooth_hist, (20, h - 220), (w - 40, 200))
        cv2.putText(frame, f"{channel.value}  rise={rise:.2f} fall={fall:.2f} decay={decay:.2f}",
                    (20, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)
        if recording:
            cv2.circle(frame, (w - 30, 30), 10, (0, 0, 255), -1)

        cv2.imshow(WINDOW, frame)
        k = cv2.waitKey(1) & 0xFF
        if k == 27: break
        elif k == ord('n'):
            channel_idx = (channel_idx + 1) % len(SCALAR_CHANNELS)
            channel = SCALAR_CHANNELS[channel_idx]
            policy = CHANNEL_POLICIES[channel.value]
            cv2.setTrackbarPos("RISE (%)", WINDOW, int(policy["rise"] * 100))
            cv2.setTrackbarPos("FALL (%)", WINDOW, int(policy["fall"] * 100))
            cv2.setTrackbarPos("DECAY (%)", WINDOW, int(policy["decay"] * 100))
            raw_hist, smooth_hist = [], []
        elif k == ord('t'):
            recording = not recording
            if not recording and len(recorder):
                recorder.save(PATHS["TRACES_DIR"] / f"lab_{channel.value}_{int(time.time())}.csv")
                recorder.clear()

    cam.release()
    detector.close()
    cv2.destroyAllWindows()
    print("\n📝 PASTE THIS INTO bloomsense/config.py (CHANNEL_POLICIES):")
    print(f'    "{channel.value}": rise={current[1]:.2f}, fall={current[2]:.2f}, decay={current[3]:.2f}')


if __name__ == "__main__":
    run_lab()
