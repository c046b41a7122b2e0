"""larvatrack: closed-loop larva posture analysis."""

__version__ = "0.1.0"
