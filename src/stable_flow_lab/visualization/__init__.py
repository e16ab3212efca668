"""Charting helpers for :mod:`stable_flow_lab`."""

from __future__ import annotations

from .visualizer import Visualizer

__all__ = ["Visualizer"]
