"""
BloomSense Signal Recorder (The Tape).

Captures raw metrics next to the smoothed channels, frame by frame, so rise/fall
rates and thresholds can be tuned offline (see tools/trace_report.py).
"""
import logging
from collections import deque
from pathlib import Path
from typing import Mapping, Optional, Union

import pandas as pd

from bloomsense.config import CONFIG
from bloomsense.core.types import Channel, SCALAR_CHANNELS, SignalSnapshot

logger = logging.getLogger(__name__)


class SignalRecorder:
    def __init__(self, max_rows: Optional[int] = None):
        self.rows = deque(maxlen=max_rows or CONFIG["TRACE_MAX_ROWS"])

    def record(self, timestamp: float, snapshot: SignalSnapshot,
               targets: Optional[Mapping[Channel, Optional[float]]] = None) -> dict:
        row = {"t": timestamp, "frame_id": snapshot.frame_id}
        for channel in SCALAR_CHANNELS:
            row[channel.value] = snapshot.value(channel)
            raw = (targets or {}).get(channel)
            # NaN marks "not computed" (entity absent or gated out)
            row[f"raw_{channel.value}"] = float("nan") if raw is None else raw
        row["swipeImpulse"] = snapshot.swipe_impulse
        row["cursorX"] = snapshot.cursor.x
        row["cursorY"] = snapshot.cursor.y
        row["isHandDetected"] = snapshot.hand_detected
        row["isFaceDetected"] = snapshot.face_detected
        self.rows.append(row)
        return row

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows))

    def save(self, path: Union[str, Path]) -> Path:
        """Atomic save of the whole trace."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        self.to_dataframe().to_csv(tmp, index=False)
        tmp.replace(path)
        logger.info(f"💾 Saved {len(self.rows)} frames to {path}")
        return path

    def clear(self):
        self.rows.clear()

    def __len__(self):
        return len(self.rows)
