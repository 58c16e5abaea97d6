"""
Pytest configuration for mediakeeper tests.
"""

import sys
from pathlib import Path

# Add src directory to path so imports work without installing the package
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Shared fakes live beside the tests
sys.path.insert(0, str(Path(__file__).parent))
