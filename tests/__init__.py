"""
Test Package for the parkgate facility engine

unit/        - domain components in isolation
integration/ - the facility service wired with its collaborators
"""

import sys
from pathlib import Path

# Add the src directory to the Python path for uninstalled checkouts
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))
