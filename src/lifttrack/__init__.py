"""lifttrack: training status, muscle-group XP and consistency tracking."""

__version__ = "0.4.0"
