"""
Package entry point.

Allows running the tool via:

    python -m curriculum_ingest

This simply forwards execution to curriculum_ingest.cli.main().
"""

from curriculum_ingest.cli import main

if __name__ == "__main__":
    main()
