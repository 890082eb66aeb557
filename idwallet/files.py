# Copyright (C) 2025 Logical Mechanism LLC
# SPDX-License-Identifier: GPL-3.0-only
import json
import os
import tempfile

from pathlib import Path
from typing import Any


def _write_atomic(path: Path, data: bytes, private: bool) -> None:
    # readers never see a half written artifact
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp, 0o600 if private else 0o644)
        os.replace(tmp, path)
    except BaseException:
        os.unlink(tmp)
        raise


def save_bytes(path: str | Path, data: bytes, private: bool = False) -> None:
    """
    Atomically replace the file at `path` with `data`.

    Args:
        path: Destination file path, parent directories are created.
        data: Bytes to write.
        private: Restrict the file to its owner (mode 0600). Use for files
            holding secret keys.

    Raises:
        OSError: If the file cannot be created or written.
    """
    _write_atomic(Path(path), data, private)


def load_bytes(path: str | Path) -> bytes:
    return Path(path).read_bytes()


def save_json(path: str | Path, data: Any, private: bool = False) -> None:
    """
    Write `data` as JSON with `indent=2` and sorted keys so artifacts diff
    cleanly. Same atomicity and `private` handling as `save_bytes`.

    Raises:
        TypeError: If `data` is not JSON serializable.
    """
    text = json.dumps(data, indent=2, sort_keys=True)
    _write_atomic(Path(path), text.encode("utf-8"), private)


def load_json(path: str | Path) -> Any:
    """
    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)
