#!/usr/bin/env python3
"""
Live Sign Recognition - Main Runner Script

Quick launcher for the live sign recognition system.

Requirements:
- Camera connected and accessible
- Network access on first run to download the MediaPipe hand model
- All dependencies installed (opencv-python, mediapipe, numpy)

Usage:
    python run_live_signs.py [--auto-start] [--config config.json]

Controls in live mode:
- Q: Quit
- C: Camera on/off
- SPACE: Pause/resume detection
- V: Speak current letter
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from sign_cam.live_signs import main

if __name__ == "__main__":
    print("🚀 Launching Live Sign Recognition System...")
    print("📋 Controls: Q=Quit | C=Camera | SPACE=Pause | V=Speak")
    print("=" * 50)
    main()
