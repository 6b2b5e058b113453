# archive.py
from __future__ import annotations

import tarfile
from pathlib import Path
from typing import BinaryIO, Iterable

# Directory packaging for state backends.
#
# A packaged directory is stored as a gzip tarball whose members are paths
# relative to the directory root. Reading it back always extracts into a
# fresh directory so consumers never share a tree.


def _relpath(p: Path, root: Path) -> str:
    return str(p.relative_to(root)).replace("\\", "/")


def _iter_entries_under(root: Path) -> Iterable[Path]:
    # deterministic traversal; directories are kept so empty ones survive
    for p in sorted(root.rglob("*")):
        if p.is_file() or p.is_dir():
            yield p


def write_tarball(dst: BinaryIO, src_dir: str | Path) -> None:
    """Write src_dir as a .tar.gz stream into dst."""
    root = Path(src_dir).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    with tarfile.open(fileobj=dst, mode="w:gz") as tar:
        for p in _iter_entries_under(root):
            tar.add(str(p), arcname=_relpath(p, root), recursive=False)


def write_tarball_file(dst: str | Path, src_dir: str | Path) -> Path:
    """Write src_dir into the tarball at dst via a tmp file and atomic rename."""
    dst = Path(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = dst.with_suffix(dst.suffix + ".tmp")
    try:
        with tmp.open("wb") as f:
            write_tarball(f, src_dir)
        tmp.replace(dst)
    finally:
        if tmp.exists():
            tmp.unlink(missing_ok=True)
    return dst


def extract_tarball(src: BinaryIO, dest: str | Path) -> Path:
    """Extract a .tar.gz stream into dest, creating it. Members escaping dest are rejected."""
    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    with tarfile.open(fileobj=src, mode="r:gz") as tar:
        tar.extractall(path=str(dest), filter="data")
    return dest
