"""Journeymap launcher.

Runs preflight checks before importing GTK-related modules, which gives
clearer error messages on new systems.

``--data-dir PATH`` points this run at another journey folder (the same
as setting JOURNEYMAP_DATA_DIR); every other argument goes to GTK.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path


def apply_data_dir(argv: list[str]) -> list[str]:
    """Consume ``--data-dir`` from ``argv`` and export it for the config layer."""
    remaining = [argv[0]] if argv else []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--data-dir":
            value = next(args, None)
            if value is None:
                raise SystemExit("--data-dir needs a path")
        elif arg.startswith("--data-dir="):
            value = arg.split("=", 1)[1]
        else:
            remaining.append(arg)
            continue
        os.environ["JOURNEYMAP_DATA_DIR"] = str(Path(value).expanduser().resolve())
    return remaining


def main(argv: list[str] | None = None) -> int:
    argv = apply_data_dir(list(sys.argv if argv is None else argv))

    from journeymap.preflight import run_preflight_or_die

    run_preflight_or_die(require_display=True, check_deps=True)

    from journeymap.app import main as app_main

    return int(app_main(argv))


if __name__ == "__main__":
    raise SystemExit(main())
