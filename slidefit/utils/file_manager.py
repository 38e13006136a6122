import os
import shutil
from pathlib import Path
from typing import Optional, Union

from slidefit.core.logger import get_logger

logger = get_logger("file_manager")

PathLike = Union[str, Path]


def ensure_dir(path: PathLike) -> Path:
    """Create a directory (and parents) if it does not exist yet"""
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


# Publish bytes to target through a temp file, so readers never see a partial write
def write_atomic(target: PathLike, data: bytes, tmp: Optional[PathLike] = None) -> Path:
    target = Path(target)
    tmp = Path(tmp) if tmp is not None else target.with_suffix(".tmp")

    with open(tmp, "wb") as fh:
        fh.write(data)
        fh.flush()
        os.fsync(fh.fileno())

    try:
        os.replace(tmp, target)
    except OSError as e:
        # Some filesystems refuse atomic renames; a plain move leaves a short window
        logger.warning(f"Atomic rename failed for {target.name} ({e}), falling back to move")
        shutil.move(str(tmp), str(target))
    return target
