"""Main entrypoint for the ``resultant-rights`` command."""
from __future__ import annotations

from resultant_rights.cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - CLI entry
    main()
