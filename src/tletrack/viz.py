#!/usr/bin/env python3
"""Visualization tools for propagated ground tracks.

Plots the sub-satellite point on a longitude/latitude grid and the
orbital radius over time. Works interactively (Jupyter) or saves PNGs
for batch use.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.dates as mdates


# Use a clean style
plt.rcParams.update({
    "figure.facecolor": "white",
    "axes.facecolor": "#fafafa",
    "axes.grid": True,
    "grid.alpha": 0.3,
    "font.family": "sans-serif",
    "font.size": 10,
})


def plot_ground_track(
    track_df: pd.DataFrame,
    title: Optional[str] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 7),
) -> plt.Figure:
    """Plot the sub-satellite point on an equirectangular grid.

    The track is broken wherever longitude wraps across ±180° so no
    horizontal streaks are drawn across the map.

    Args:
        track_df: DataFrame from Propagator.ground_track()
        title: Plot title
        save_path: Path to save figure (optional)

    Returns:
        matplotlib Figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    lon = track_df["longitude_deg"].to_numpy(dtype=float)
    lat = track_df["latitude_deg"].to_numpy(dtype=float)

    # Split on the antimeridian
    breaks = np.where(np.abs(np.diff(lon)) > 180.0)[0] + 1
    for seg_lon, seg_lat in zip(np.split(lon, breaks), np.split(lat, breaks)):
        ax.plot(seg_lon, seg_lat, linewidth=1.0, color="#2c3e50")

    if len(lon):
        ax.scatter(lon[0], lat[0], color="#2ecc71", zorder=3, label="Start")
        ax.scatter(lon[-1], lat[-1], color="#e74c3c", zorder=3, label="End")
        ax.legend(loc="upper right", fontsize=8)

    ax.set_xlim(-180, 180)
    ax.set_ylim(-90, 90)
    ax.set_xticks(np.arange(-180, 181, 30))
    ax.set_yticks(np.arange(-90, 91, 30))
    ax.set_xlabel("Longitude (°)")
    ax.set_ylabel("Latitude (°)")
    ax.set_title(title or "Ground Track")

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig


def plot_radius_history(
    track_df: pd.DataFrame,
    title: Optional[str] = None,
    save_path: Optional[str | Path] = None,
    figsize: tuple = (14, 5),
) -> plt.Figure:
    """Plot orbital radius and latitude against time.

    Args:
        track_df: DataFrame from Propagator.ground_track()
        title: Plot title
        save_path: Path to save figure (optional)

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(2, 1, figsize=figsize, sharex=True)
    times = pd.to_datetime(track_df["at"], utc=True).dt.tz_convert(None)

    ax = axes[0]
    ax.plot(times, track_df["radius_km"], linewidth=0.8, color="#8e44ad")
    ax.set_ylabel("Radius (km)")
    ax.set_title(title or "Orbital Radius")

    ax = axes[1]
    ax.plot(times, track_df["latitude_deg"], linewidth=0.8, color="#2980b9")
    ax.set_ylabel("Latitude (°)")
    ax.set_xlabel("Time (UTC)")

    for ax in axes:
        ax.xaxis.set_major_formatter(mdates.DateFormatter("%m-%d %H:%M"))
        ax.xaxis.set_major_locator(mdates.AutoDateLocator())
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    return fig
