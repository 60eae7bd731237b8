"""
Pytest configuration and fixtures for Tonecord tests.
"""

import os
import sys
import tempfile
from pathlib import Path

# Keep test runs from writing session logs into the working tree
os.environ.setdefault("TONECORD_LOG_DIR", str(Path(tempfile.gettempdir()) / "tonecord-test-logs"))

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))
