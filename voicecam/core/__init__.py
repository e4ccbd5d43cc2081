"""
Core functionality for the voice camera.

This module contains the main processing components:
- Camera lifecycle and video capture
- Face/expression and object perception providers
- The per-frame detection loop and overlay rendering
- Speech recognition, voice commands and spoken feedback
"""

__all__ = []
