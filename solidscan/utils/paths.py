"""Model file discovery helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Generator, Iterable

MODEL_EXTENSIONS = (".yaml", ".yml", ".json")


def iter_model_files(
    root_paths: Iterable[str], extensions: tuple[str, ...] = MODEL_EXTENSIONS
) -> Generator[Path, None, None]:
    """Yield model files beneath the provided paths, in sorted order.

    A path naming a file is yielded as is, whatever its suffix.
    """

    for root in root_paths:
        root_path = Path(root)
        if root_path.is_file():
            yield root_path
            continue
        for path in sorted(root_path.rglob("*")):
            if path.suffix in extensions and path.is_file():
                yield path
