"""Workout structure engine: flatten, estimate load, map zones, edit."""
