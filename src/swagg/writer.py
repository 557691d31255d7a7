"""Write rendered files under an output directory.

The generator itself never touches the filesystem; :mod:`swagg.app` hands
the mapping from :func:`~swagg.emitter.render_tree` (plus any text artifacts
registered by hooks) to :func:`write_artifacts`. Each file is written
atomically, so an interrupted run never leaves a half-written module behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from swagg.exceptions import InvalidUsageError

logger = logging.getLogger(__name__)


def target_path(out_dir: Path, relative: str) -> Path:
    """Resolve *relative* under *out_dir*, refusing paths that escape it.

    Raises:
        InvalidUsageError: If *relative* is absolute or climbs out of
            *out_dir*.
    """
    root = out_dir.resolve()
    candidate = (root / relative).resolve()
    if Path(relative).is_absolute() or not candidate.is_relative_to(root):
        raise InvalidUsageError(f"Refusing to write outside {root}: {relative}")
    return candidate


def write_artifacts(files: dict[str, str], out_dir: Union[str, Path]) -> list[Path]:
    """Write every ``relative path -> text`` entry of *files* under *out_dir*.

    All paths are checked before anything is written.

    Returns:
        The written paths, in the order of *files*.
    """
    root = Path(out_dir)
    targets = [(target_path(root, relative), text) for relative, text in files.items()]
    written = []
    for path, text in targets:
        _atomic_write(path, text)
        written.append(path)
    logger.info("Wrote %d file(s) under %s", len(written), root)
    return written


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to a temp file next to *path*, then rename it over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
