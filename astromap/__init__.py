"""Astrocartography and relationship-synthesis engine."""

from .config import EngineSettings, get_settings
from .services.classification import classify
from .services.ephem import (
    EphemerisBackendError,
    InvalidBirthDataError,
    chart_for_profile,
    positions,
    sidereal_time,
)
from .services.lines import build_line_set, filter_lines, generate_lines, lines_for_profile
from .services.merger import composite, synastry_pair
from .services.overlaps import classify_overlap, generate_bond_summary, tag_overlaps
from .services.proximity import nearest_lines, scan_hotspots
from .services.relocation import compute_relocated_chart, relocated_chart_for_profile, relocated_highlights
from .services.synthesis import location_synthesis, synthesis_paragraph
from .services.transits import city_activation, current_activations, find_activation_windows, find_important_dates

__version__ = "0.1.0"

__all__ = [
    "EngineSettings",
    "EphemerisBackendError",
    "InvalidBirthDataError",
    "build_line_set",
    "chart_for_profile",
    "city_activation",
    "classify",
    "classify_overlap",
    "composite",
    "compute_relocated_chart",
    "current_activations",
    "filter_lines",
    "find_activation_windows",
    "find_important_dates",
    "generate_bond_summary",
    "generate_lines",
    "get_settings",
    "lines_for_profile",
    "location_synthesis",
    "nearest_lines",
    "positions",
    "relocated_chart_for_profile",
    "relocated_highlights",
    "scan_hotspots",
    "sidereal_time",
    "synastry_pair",
    "synthesis_paragraph",
    "tag_overlaps",
]
