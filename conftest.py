import sys
from pathlib import Path

# Allow running the suite without installing the package
src_path = str(Path(__file__).parent / "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)
