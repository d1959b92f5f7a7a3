"""Reference image sources for the catalog."""

import logging
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ('.jpg', '.jpeg', '.png')


def directory_source(directory: Union[str, Path],
                     extensions: Sequence[str] = IMAGE_EXTENSIONS) -> Iterator[Tuple[str, bytes]]:
    """
    Yield ``(file name, bytes)`` for every image file in a directory.

    Files are listed in name order; extensions are compared case-insensitively.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Reference directory not found: {directory}")

    allowed = {ext.lower() for ext in extensions}
    files = sorted(p for p in directory.iterdir()
                   if p.is_file() and p.suffix.lower() in allowed)
    logger.debug(f"Found {len(files)} reference images in {directory}")

    for path in files:
        yield path.name, path.read_bytes()


def memory_source(images: Union[Mapping[str, bytes],
                                Iterable[Tuple[str, bytes]]]) -> Iterator[Tuple[str, bytes]]:
    """Yield ``(identifier, bytes)`` pairs from a mapping or pair iterable."""
    items = images.items() if isinstance(images, Mapping) else images
    for identifier, data in items:
        yield str(identifier), data
