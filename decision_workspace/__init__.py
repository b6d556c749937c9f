"""AI decision workspace: problem gate, ROI quadrant scoring and case workflow."""

__version__ = "0.1.0"
