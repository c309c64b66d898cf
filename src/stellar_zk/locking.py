"""Per-project lock so two pipeline runs never share a target/ directory."""
from __future__ import annotations

import errno
import fcntl
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import ProjectLockedError

LOGGER = logging.getLogger(__name__)

LOCK_FILE = ".stellar-zk.lock"


@contextmanager
def project_lock(project_dir: Path) -> Iterator[Path]:
    """Hold an exclusive non-blocking flock on ``target/.stellar-zk.lock``.

    Raises ProjectLockedError immediately if another process holds it.
    The holder's pid is written to the file for humans.
    """
    project_dir = Path(project_dir)
    lock_path = project_dir / "target" / LOCK_FILE
    lock_path.parent.mkdir(parents=True, exist_ok=True)

    fp = open(lock_path, "a+")
    try:
        fcntl.flock(fp.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError as e:
        fp.close()
        if e.errno in (errno.EAGAIN, errno.EACCES):
            raise ProjectLockedError(project_dir) from None
        raise

    try:
        fp.seek(0)
        fp.truncate()
        fp.write(f"{os.getpid()}\n")
        fp.flush()
        LOGGER.debug("acquired %s", lock_path)
        yield lock_path
    finally:
        fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
        fp.close()
        LOGGER.debug("released %s", lock_path)


__all__ = ["LOCK_FILE", "project_lock"]
