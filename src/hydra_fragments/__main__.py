"""Module entry point for `python -m hydra_fragments`."""

from .cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
