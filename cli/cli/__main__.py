"""Entry point for `python -m cli` and `sqlshift` console script."""

from __future__ import annotations

from cli.app import app


def main() -> None:
    app(prog_name="sqlshift")


if __name__ == "__main__":
    main()
