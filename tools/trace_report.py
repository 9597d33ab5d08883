"""
BloomSense Trace Report.

Plots a recorded trace (raw metric vs smoothed channel) so rates and thresholds
can be judged frame by frame.

Usage:
    python tools/trace_report.py data/traces/trace_1700000000.csv [channel ...]
"""
import sys
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from bloomsense.config import PATHS
from bloomsense.core.types import SCALAR_CHANNELS


def summarize(df: pd.DataFrame, channels):
    """Per-channel stats: how often the metric was computed and how far smoothing lagged."""
    rows = []
    for ch in channels:
        raw = df[f"raw_{ch}"]
        lag = (df[ch] - raw).abs()
        rows.append({
            "channel": ch,
            "coverage": float(raw.notna().mean()),
            "mean_abs_lag": float(lag.mean()) if raw.notna().any() else float("nan"),
            "max_value": float(df[ch].max()),
        })
    return pd.DataFrame(rows)


def plot_trace(csv_path, channels=None, out_dir=None):
    df = pd.read_csv(csv_path)
    if df.empty:
        print(f"⚠️ Empty trace: {csv_path}")
        return None

    channels = channels or [c.value for c in SCALAR_CHANNELS]
    t = df["t"] - df["t"].iloc[0]

    fig, axes = plt.subplots(len(channels) + 1, 1, figsize=(12, 2.2 * (len(channels) + 1)), sharex=True)
    for ax, ch in zip(axes, channels):
        ax.plot(t, df[f"raw_{ch}"], color="grey", linewidth=0.8, label="raw")
        ax.plot(t, df[ch], color="green", linewidth=1.4, label="smoothed")
        ax.set_ylim(-0.05, 1.05)
        ax.set_ylabel(ch, fontsize=8)
        ax.legend(loc="upper right", fontsize=7)

    ax = axes[-1]
    ax.stem(t, df["swipeImpulse"], markerfmt=" ", basefmt="grey")
    ax.set_ylabel("swipe", fontsize=8)
    ax.set_xlabel("seconds")

    out_dir = out_dir or PATHS["REPORTS_DIR"]
    os.makedirs(out_dir, exist_ok=True)
    out = os.path.join(str(out_dir), os.path.splitext(os.path.basename(str(csv_path)))[0] + ".png")
    plt.tight_layout()
    plt.savefig(out, dpi=100)
    plt.close(fig)

    print(summarize(df, channels).to_string(index=False))
    print(f"📈 Saved plot: {out}")
    return out


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    plot_trace(sys.argv[1], sys.argv[2:] or None)
