"""Options strategy scoring and ranking engine."""

from __future__ import annotations

from typing import Sequence

__all__ = ["main"]


def main(argv: Sequence[str] | None = None) -> int:
    """Dispatch to the ranker CLI."""

    from options_ranker.cli import main as cli_main

    return cli_main(argv)
