"""Worship Presenter - live setlist and slide broadcasting.

This package provides tools for:
- Composing a setlist of songs, Bible passages, images and overlay tools
- Navigating slides and broadcasting the live screen to viewer displays
- Relaying broadcasts to viewers joined by room PIN
"""

__version__ = "0.3.0"
