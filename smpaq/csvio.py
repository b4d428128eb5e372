"""Comma-separated integer tables on disk."""

from __future__ import annotations

import os
from typing import Iterable


def file_exists(path: str | os.PathLike) -> bool:
    """True when path names a readable file."""
    return os.path.isfile(path) and os.access(path, os.R_OK)


def write_csv(rows: Iterable[Iterable[object]], path: str | os.PathLike) -> None:
    """Write each row as one comma-separated line."""
    with open(path, "w", encoding="ascii", newline="") as handle:
        for row in rows:
            handle.write(",".join(str(item) for item in row))
            handle.write("\n")


def read_int_csv(path: str | os.PathLike) -> list[list[int]]:
    """Read a table of arbitrary-size integers written by write_csv."""
    data: list[list[int]] = []
    with open(path, encoding="ascii", newline="") as handle:
        for line in handle:
            cells = line.rstrip("\n").split(",")
            if cells and cells[-1] == "":
                cells.pop()
            data.append([int(cell) for cell in cells])
    return data