"""Run the live camera window.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see the camera mosaic)

Space takes a snap, 0-4 pick the face filter, 'q' quits.
"""
import logging
from framelab.config import Settings
from framelab.live import run_live_overlay

if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=s.LOG_LEVEL)
    run_live_overlay(s)
