"""
BloomSense HUD.
Visualizes the Signal Bus: channel bars, gates, skeletons and the cursor.
Read-only: the HUD peeks at the swipe impulse but never consumes it.
"""

import cv2
import numpy as np
import mediapipe as mp

from bloomsense.core.types import SCALAR_CHANNELS


class HUD:
    def __init__(self):
        self.hand_connections = mp.solutions.hands.HAND_CONNECTIONS

        # --- THEME COLORS (BGR) ---
        self.C_CYAN   = (255, 255, 0)    # Standard UI
        self.C_RED    = (0, 0, 255)      # No tracking
        self.C_ORANGE = (0, 165, 255)    # Swipe
        self.C_GREEN  = (0, 255, 0)      # Engaged latch
        self.C_PURPLE = (255, 0, 255)    # Gates
        self.C_DARK   = (20, 20, 20)     # Backgrounds

        self.show_gates = True

        # Swipe flash keeps the arrow visible for a few frames after a peek
        self.swipe_flash = 0
        self.swipe_sign = 0

    def toggle_gates(self):
        self.show_gates = not self.show_gates

    def _draw_glass_panel(self, img, x, y, w, h, color, alpha=0.6):
        """Draws a semi-transparent 'Glass' background."""
        if y+h > img.shape[0] or x+w > img.shape[1] or x < 0 or y < 0: return

        sub_img = img[y:y+h, x:x+w]
        rect = np.full(sub_img.shape, color, dtype=np.uint8)
        res = cv2.addWeighted(sub_img, 1 - alpha, rect, alpha, 1.0)
        img[y:y+h, x:x+w] = res
        cv2.rectangle(img, (x, y), (x+w, y+h), color, 1)

    def render(self, frame, snapshot, detection=None, gates=None):
        h, w, _ = frame.shape

        # 1. STATUS
        if snapshot.hand_detected or snapshot.face_detected:
            ui_color = self.C_CYAN
            status_msg = f"TRACKING // HAND {'ON' if snapshot.hand_detected else 'OFF'} FACE {'ON' if snapshot.face_detected else 'OFF'}"
        else:
            ui_color = self.C_RED
            status_msg = "NO TRACKING // CHANNELS FADING"

        # 2. GATES
        if self.show_gates and gates is not None:
            for name, gate in gates.items():
                if name == "full": continue
                x1, y1 = int(gate.x_min * w), int(gate.y_min * h)
                x2, y2 = int(gate.x_max * w), int(gate.y_max * h)
                cv2.rectangle(frame, (x1, y1), (x2, y2), self.C_PURPLE, 1)
                cv2.putText(frame, name, (x1 + 4, y1 + 14), cv2.FONT_HERSHEY_PLAIN, 0.9, self.C_PURPLE, 1)

        # 3. SKELETONS
        if detection is not None:
            for hand in detection.hands:
                pts = [(int(p.x * w), int(p.y * h)) for p in hand]
                for a, b in self.hand_connections:
                    cv2.line(frame, pts[a], pts[b], ui_color, 2)
                for p in pts:
                    cv2.circle(frame, p, 2, self.C_DARK, -1)

        # 4. CURSOR (only while a hand is present)
        if snapshot.hand_detected:
            cx, cy = int(snapshot.cursor.x * w), int(snapshot.cursor.y * h)
            cv2.circle(frame, (cx, cy), 10, ui_color, 2)

        # 5. CHANNEL BARS
        panel_x, panel_y = 20, 80
        row_h, bar_w = 22, 160
        self._draw_glass_panel(frame, panel_x - 10, panel_y - 18, bar_w + 190, row_h * len(SCALAR_CHANNELS) + 20, self.C_DARK, 0.5)
        for i, channel in enumerate(SCALAR_CHANNELS):
            y = panel_y + i * row_h
            value = snapshot.value(channel)
            color = self.C_GREEN if snapshot.engaged.get(channel) else ui_color
            cv2.putText(frame, channel.value, (panel_x, y + 10), cv2.FONT_HERSHEY_PLAIN, 1.0, color, 1)
            bx = panel_x + 140
            cv2.rectangle(frame, (bx, y), (bx + bar_w, y + 10), self.C_DARK, -1)
            cv2.rectangle(frame, (bx, y), (bx + int(bar_w * value), y + 10), color, -1)

        # 6. SWIPE ARROW
        impulse = snapshot.swipe_impulse
        if impulse != 0.0:
            self.swipe_flash = 8
            self.swipe_sign = 1 if impulse > 0 else -1
        if self.swipe_flash > 0:
            self.swipe_flash -= 1
            mid = (w // 2, h - 60)
            tip = (w // 2 + self.swipe_sign * 120, h - 60)
            cv2.arrowedLine(frame, mid, tip, self.C_ORANGE, 4, tipLength=0.3)

        # 7. STATUS BAR
        self._draw_glass_panel(frame, 20, 20, 420, 36, self.C_DARK, 0.4)
        cv2.putText(frame, status_msg, (30, 44), cv2.FONT_HERSHEY_PLAIN, 1.1, ui_color, 1)

    def draw_fps(self, frame, fps, detect_fps=None):
        text = f"{int(fps)} FPS" if detect_fps is None else f"{int(fps)} / {int(detect_fps)} FPS"
        cv2.putText(frame, text, (frame.shape[1]-160, 40),
                    cv2.FONT_HERSHEY_PLAIN, 1.2, self.C_GREEN, 1)
