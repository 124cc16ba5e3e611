#!/usr/bin/env python3
"""
ImageSet Manager Entry Point

This script provides a simple entry point for the ImageSet Manager tool.
All application logic is contained in the imageset_manager.libs.main_app module.
"""

import sys
from pathlib import Path

# Run from a checkout without installing the package
sys.path.insert(0, str(Path(__file__).parent))

if __name__ == "__main__":
    try:
        from imageset_manager.libs.main_app import main
    except ImportError as e:
        print(f"Error importing main application: {e}", file=sys.stderr)
        print("Please ensure the dependencies are installed (pip install -e .)", file=sys.stderr)
        sys.exit(1)
    main()
