"""Package entry point.

Preferred invocation is via the installed console script:

    exercise-catalog ...

For convenience we also support:

    python -m exercise_catalog ...
"""

from __future__ import annotations

from .cli import app


def main() -> None:
    """Entry point used by `python -m exercise_catalog`."""

    app()


if __name__ == "__main__":
    main()
