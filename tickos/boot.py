"""Boot sequence: run every autorun script in order, stopping at the first failure.

A failure (load error or exception escaping a script) is presented, then the boot
waits for a key press before giving up on the remaining scripts.
"""

from __future__ import annotations

import importlib.util
import traceback
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from tickos.core.errors import ArgumentInvalid
from tickos.libs.env import ScriptEnv

ScriptMain = Callable[[ScriptEnv], Coroutine[Any, Any, Any]]
Presenter = Callable[[str], None]

KEY_DOWN = "key_down"


def autorun_paths(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.glob("*.py") if p.is_file())


def load_script(path: Path) -> ScriptMain:
    """Import a script file and return its `main(env)` coroutine function."""

    spec = importlib.util.spec_from_file_location(f"tickos_autorun_{path.stem}", path)
    if spec is None or spec.loader is None:
        raise ArgumentInvalid(f"cannot load script: {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    main = getattr(module, "main", None)
    if not callable(main):
        raise ArgumentInvalid(f"{path.name}: missing main(env)")
    return main


async def wait_for_key(env: ScriptEnv) -> None:
    while True:
        name, *_ = await env.event.pull(KEY_DOWN)
        if name == KEY_DOWN:
            return


async def show_error(env: ScriptEnv, text: str, *, present: Presenter | None = None) -> None:
    env.log.error("%s", text)
    if present is not None:
        present(text + "\nPress any key to continue")
    await wait_for_key(env)


async def boot(env: ScriptEnv, paths: Iterable[Path], *, present: Presenter | None = None) -> int:
    """Run autorun scripts in order. Returns how many completed successfully."""

    env.log.info("Starting %s", env.version)
    completed = 0
    for path in paths:
        try:
            main = load_script(path)
        except Exception as e:
            await show_error(env, "".join(traceback.format_exception_only(e)).strip(), present=present)
            break

        try:
            await main(env)
        except Exception as e:
            await show_error(env, "".join(traceback.format_exception(e)).strip(), present=present)
            break

        completed += 1
    return completed
