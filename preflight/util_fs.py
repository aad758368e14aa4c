"""Filesystem utilities for preflight."""

from pathlib import Path
from typing import Iterable, Union

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    """Ensure that a directory exists and return the Path object."""

    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def write_text(path: PathLike, content: str, *, encoding: str = "utf-8") -> Path:
    """Write text content to a file, creating parent directories as needed."""

    file_path = Path(path)
    if file_path.parent != Path(""):
        file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding=encoding)
    return file_path


def iter_files(roots: Iterable[Path]) -> Iterable[Path]:
    """Yield regular files below each existing root, sorted per root."""

    for root in roots:
        if not root.is_dir():
            continue
        for path in sorted(root.rglob("*")):
            if path.is_file():
                yield path


def tail_lines(path: Path, count: int = 40) -> list[str]:
    """Return the last ``count`` lines of a text file, or [] if it is missing."""

    if not path.exists():
        return []
    lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
    return lines[-count:]


def human_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "K", "M"):
        if size < 1024 or unit == "M":
            return f"{size:.0f}{unit}" if unit == "B" else f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}G"


__all__ = ["ensure_dir", "human_size", "iter_files", "tail_lines", "write_text"]
