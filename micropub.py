"""micropub.py — Entry point. All logic lives in the builder/ package.

Run with:
    python micropub.py                     Print usage and detected configuration.
    python micropub.py compile             Run the full pipeline.
    python micropub.py compile SMD=x.smd   Override the template (also DATA, BUILD_DIR, ...).
or, after pip install -e .:
    micropub compile

Targets:
    compile, setup, check, init-data, clean, stencila-install, help
"""

import sys

from builder import main

if __name__ == "__main__":
    sys.exit(main())
