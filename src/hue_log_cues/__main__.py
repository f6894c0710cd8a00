"""Module entrypoint.

Allows:
    python -m hue_log_cues
"""

from __future__ import annotations

from hue_log_cues.cli import main

if __name__ == "__main__":
    main()
