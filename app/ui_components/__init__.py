"""UI components for the Exercise Catalog viewer."""
from .cards import render_protocol_card
from .plots import progress_frame, render_progress_chart

__all__ = [
    "render_protocol_card",
    "progress_frame",
    "render_progress_chart",
]
