"""Module entry point: python -m gpslife ..."""

from __future__ import annotations

from gpslife.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
