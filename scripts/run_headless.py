"""Boot an autorun directory on a headless machine and print its final status.

Contract
- Inputs: a directory of autorun scripts (`*.py`, each with `async def main(env)`).
- Runs a fixed number of frames back to back (no real-time pacing).
- Optional `--event name[:json-args]` entries are enqueued before the first frame.
- Outputs: error screens and the final machine status (JSON) on stdout; logs go to stderr.

Usage:
    uv run python scripts/run_headless.py path/to/autorun --frames 120 --event 'key_down:[32]'

This script is deterministic.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from tickos.api.models import EngineMode
from tickos.boot import autorun_paths
from tickos.host import Host
from tickos.settings import HostSettings


def _parse_event(raw: str) -> tuple[str, list[object]]:
    name, _, args = raw.partition(":")
    arguments = json.loads(args) if args else []
    if not isinstance(arguments, list):
        raise ValueError(f"event arguments must be a JSON array: {raw}")
    return name, arguments


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("autorun_dir", type=Path)
    parser.add_argument("--frames", type=int, default=60)
    parser.add_argument("--mode", choices=[m.value for m in EngineMode], default=EngineMode.classic.value)
    parser.add_argument("--event", action="append", default=[])
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    host = Host(settings=HostSettings(engine_mode=EngineMode(args.mode), autorun_dir=args.autorun_dir))
    host.boot(autorun_paths(args.autorun_dir), present=print)

    for raw in args.event:
        name, arguments = _parse_event(raw)
        host.scheduler.enqueue(name, *arguments)

    host.run_frames(args.frames)
    print(host.status().model_dump_json(indent=2))


if __name__ == "__main__":
    main()
