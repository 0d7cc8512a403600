"""Filesystem operations used by the deployment pipeline."""

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable


class FileSystem(ABC):
    """Filesystem operations abstracted for testability."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Return whether a path exists."""

    @abstractmethod
    def is_directory(self, path: Path) -> bool:
        """Return whether a path exists and is a directory."""

    @abstractmethod
    def make_dirs(self, path: Path) -> None:
        """Create a directory and any missing parents."""

    @abstractmethod
    def copy_tree(
        self, src: Path, dst: Path, exclude_patterns: Iterable[str] = ()
    ) -> None:
        """Merge the contents of ``src`` into ``dst``.

        Entries whose name matches any glob in ``exclude_patterns`` are
        skipped at every depth.
        """

    @abstractmethod
    def remove_tree(self, path: Path) -> None:
        """Recursively delete a directory."""


class LocalFileSystem(FileSystem):
    """Local disk implementation built on pathlib and shutil."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_directory(self, path: Path) -> bool:
        return path.is_dir()

    def make_dirs(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def copy_tree(
        self, src: Path, dst: Path, exclude_patterns: Iterable[str] = ()
    ) -> None:
        patterns = tuple(exclude_patterns)
        ignore = shutil.ignore_patterns(*patterns) if patterns else None
        self._merge(src, dst, ignore)

    def remove_tree(self, path: Path) -> None:
        if path.exists():
            shutil.rmtree(path)

    def _merge(self, src: Path, dst: Path, ignore: Callable | None) -> None:
        """Copy ``src`` over ``dst`` entry by entry, keeping links as links.

        An existing destination entry of a different shape (a link where a
        file is expected, a file where a directory is expected) is replaced.
        Destination entries absent from ``src`` are left alone.
        """
        names = os.listdir(src)
        ignored = ignore(os.fspath(src), names) if ignore else set()

        dst.mkdir(parents=True, exist_ok=True)
        for name in names:
            if name in ignored:
                continue
            source, target = src / name, dst / name

            if source.is_symlink():
                _remove_entry(target)
                os.symlink(os.readlink(source), target)
            elif source.is_dir():
                if target.is_symlink() or (target.exists() and not target.is_dir()):
                    _remove_entry(target)
                self._merge(source, target, ignore)
            else:
                if target.is_symlink():
                    target.unlink()
                shutil.copy2(source, target)

        shutil.copystat(src, dst)


def _remove_entry(path: Path) -> None:
    # Links are removed themselves, never followed
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)
