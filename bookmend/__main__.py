"""Module entrypoint for running bookmend as ``python -m bookmend``."""

from __future__ import annotations

from bookmend.cli import main


if __name__ == "__main__":
    main()
