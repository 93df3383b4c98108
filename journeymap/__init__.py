"""Journeymap - branching journey timelines with an animated path marker."""

__version__ = "1.0.0"
__app_id__ = "io.github.journeymap.Journeymap"
