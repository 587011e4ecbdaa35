"""
Filesystem Staging

Idempotent directory creation, binary-safe copies, whole-file writes and
the other small filesystem operations the pipelines perform directly
instead of shelling out to cp/ln/rm.
"""

from pathlib import Path
from typing import Optional, Union
import logging
import os
import shutil

from kbuilder.core.exceptions import StagingError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def create_directory(path: PathLike, mode: int = 0o755) -> Path:
    """
    Create a directory (and parents) if it does not exist yet.

    Calling it on an existing directory is a no-op.

    Args:
        path: Directory to create
        mode: Permission bits for newly created directories

    Returns:
        The directory path

    Raises:
        StagingError: If the directory cannot be created or the path
            exists and is not a directory
    """
    directory = Path(path)
    if directory.is_dir():
        return directory
    try:
        directory.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as exc:
        raise StagingError(
            f"Failed to create directory: {directory}", path=str(directory), cause=exc
        ) from exc
    logger.debug("Created directory %s", directory)
    return directory


def copy_file(src: PathLike, dest: PathLike, mode: Optional[int] = 0o755) -> Path:
    """
    Copy a file byte for byte and set the destination permissions.

    Args:
        src: Source file
        dest: Destination file, or an existing directory to copy into
        mode: Permission bits for the destination (None keeps the default)

    Returns:
        Path of the written file

    Raises:
        StagingError: If the source cannot be read or the destination written
    """
    source = Path(src)
    target = Path(dest)
    if target.is_dir():
        target = target / source.name

    if not source.is_file():
        raise StagingError(f"Cannot open source file: {source}", path=str(source))

    try:
        shutil.copyfile(source, target)
        if mode is not None:
            os.chmod(target, mode)
    except OSError as exc:
        raise StagingError(
            f"Cannot create destination file: {target}", path=str(target), cause=exc
        ) from exc

    logger.debug("Copied %s -> %s", source, target)
    return target


def write_file(path: PathLike, content: str, mode: Optional[int] = None) -> Path:
    """
    Replace a file's contents with the given text.

    Args:
        path: Destination file
        content: Text to persist
        mode: Optional permission bits applied after writing

    Returns:
        The file path

    Raises:
        StagingError: If the file cannot be opened or written
    """
    target = Path(path)
    try:
        with open(target, "w", encoding="utf-8") as f:
            f.write(content)
        if mode is not None:
            os.chmod(target, mode)
    except OSError as exc:
        raise StagingError(f"Cannot create file: {target}", path=str(target), cause=exc) from exc
    return target


def append_file(path: PathLike, content: str) -> Path:
    """Append text to a file, creating it if needed."""
    target = Path(path)
    try:
        with open(target, "a", encoding="utf-8") as f:
            f.write(content)
    except OSError as exc:
        raise StagingError(f"Cannot append to file: {target}", path=str(target), cause=exc) from exc
    return target


def create_symlink(target: PathLike, link: PathLike) -> Path:
    """
    Point ``link`` at ``target``, replacing whatever is already there.

    Same semantics as ``ln -sf``.
    """
    link_path = Path(link)
    try:
        if link_path.is_symlink() or link_path.exists():
            link_path.unlink()
        link_path.symlink_to(target)
    except OSError as exc:
        raise StagingError(
            f"Failed to create symbolic link: {link_path} -> {target}", path=str(link_path), cause=exc
        ) from exc
    return link_path


def remove_tree(path: PathLike) -> None:
    """Remove a directory tree; a missing path counts as removed."""
    directory = Path(path)
    if not directory.exists() and not directory.is_symlink():
        return
    try:
        if directory.is_dir() and not directory.is_symlink():
            shutil.rmtree(directory)
        else:
            directory.unlink()
    except OSError as exc:
        raise StagingError(f"Failed to remove {directory}", path=str(directory), cause=exc) from exc
    logger.debug("Removed %s", directory)


def file_contains(path: PathLike, marker: str) -> bool:
    """True when the file exists and any line contains the marker."""
    target = Path(path)
    if not target.is_file():
        return False
    with open(target, "r", encoding="utf-8", errors="replace") as f:
        return any(marker in line for line in f)
