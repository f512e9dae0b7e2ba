"""Change-detecting file copier.

Copies a file, a glob of files, or a directory tree into a target working
copy and reports which destination paths were created or overwritten.
A destination is rewritten only when it is missing, differs in size, or
differs in content; modification times are never consulted, so a repeated
run over unchanged inputs reports nothing.
"""

import glob
import os
import shutil
from pathlib import Path

from reposync.core.exceptions.errors import SourceNotFoundError, ValidationError
from reposync.core.logger.logger import get_logger

logger = get_logger(__name__)

GLOB_CHARS = ("*", "?", "[")
SKIPPED_DIRS = {".git"}
CHUNK_SIZE = 64 * 1024


def is_glob(path: str) -> bool:
    """Return True if the path contains a glob metacharacter."""
    return any(char in path for char in GLOB_CHARS)


def resolve_source(source_root: str | Path, source: str) -> str:
    """Join a source path or glob onto a checkout, refusing to leave it.

    The source is appended to the root even when it is absolute, so
    ``/templates/ci.yml`` means ``<root>/templates/ci.yml``. For a glob the
    directory before the first metacharacter must stay inside the root.

    Args:
        source_root: Root of the source checkout.
        source: Path or glob relative to the root.

    Returns:
        Normalized absolute path or pattern.

    Raises:
        ValidationError: If the source resolves outside ``source_root``.
    """
    root = Path(source_root).resolve()
    joined = os.path.normpath(f"{root}/{source}")

    anchor = joined
    if is_glob(joined):
        first_magic = min(joined.index(char) for char in GLOB_CHARS if char in joined)
        anchor = os.path.dirname(joined[:first_magic])

    resolved = Path(anchor).resolve()
    if resolved != root and not resolved.is_relative_to(root):
        raise ValidationError(
            f"Source escapes the source checkout: {source}",
            field="source",
            details={"source_root": str(root)},
        )
    return joined


def files_differ(source: Path, destination: Path) -> bool:
    """Compare two files by existence, size and exact bytes.

    Args:
        source: Existing source file.
        destination: Destination file, which may not exist.

    Returns:
        True if the destination must be (re)written.
    """
    if not destination.is_file():
        return True
    if source.stat().st_size != destination.stat().st_size:
        return True

    with open(source, "rb") as src, open(destination, "rb") as dst:
        while True:
            a = src.read(CHUNK_SIZE)
            b = dst.read(CHUNK_SIZE)
            if a != b:
                return True
            if not a:
                return False


class Copier:
    """Propagates files from a source checkout into a target directory."""

    def sync_path(self, source_path: str | Path, target_dir: str | Path, dest: str = ".") -> list[str]:
        """Copy a file, glob, or directory into ``target_dir/dest``.

        - glob: every matching file goes to ``dest/<basename>`` (flattened)
        - file: copied to ``dest``, which names the destination file; when
          ``dest`` is an existing directory the file keeps its basename inside it
        - directory: mirrored under ``dest``, skipping ``.git``

        Args:
            source_path: Absolute source path or glob pattern.
            target_dir: Root of the target working copy.
            dest: Destination relative to ``target_dir``.

        Returns:
            Changed paths, relative to ``target_dir`` in POSIX form, in
            discovery order.

        Raises:
            SourceNotFoundError: If a non-glob source does not exist.
            ValidationError: If ``dest`` resolves outside ``target_dir``.
        """
        source = str(source_path)
        target_root = Path(target_dir).resolve()
        dest_root = self._resolve_dest(target_root, dest)

        if is_glob(source):
            pairs = self._glob_pairs(source, dest_root)
        else:
            source_file = Path(source)
            if not source_file.exists():
                raise SourceNotFoundError(source)
            if source_file.is_file():
                destination = dest_root / source_file.name if dest_root.is_dir() else dest_root
                pairs = [(source_file, destination)]
            else:
                pairs = self._tree_pairs(source_file, dest_root)

        changed = []
        for src, dst in pairs:
            if self._copy_if_changed(src, dst):
                changed.append(dst.relative_to(target_root).as_posix())

        logger.debug(f"Synced {source} -> {dest}: {len(changed)} changed")
        return changed

    def _resolve_dest(self, target_root: Path, dest: str) -> Path:
        dest_root = (target_root / (dest or ".")).resolve()
        if dest_root != target_root and not dest_root.is_relative_to(target_root):
            raise ValidationError(
                f"Destination escapes the target directory: {dest}",
                field="dest",
                details={"target_dir": str(target_root)},
            )
        return dest_root

    def _glob_pairs(self, pattern: str, dest_root: Path) -> list[tuple[Path, Path]]:
        matches = sorted(m for m in glob.glob(pattern, recursive=True) if os.path.isfile(m))
        if not matches:
            logger.debug(f"Glob matched no files: {pattern}")
        return [(Path(m), dest_root / os.path.basename(m)) for m in matches]

    def _tree_pairs(self, source_dir: Path, dest_root: Path) -> list[tuple[Path, Path]]:
        pairs = []
        for dirpath, dirnames, filenames in os.walk(source_dir):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
            current = Path(dirpath)
            for name in sorted(filenames):
                if name in SKIPPED_DIRS:
                    continue
                absolute = current / name
                # Symlinks and special files are not propagated
                if absolute.is_symlink() or not absolute.is_file():
                    continue
                pairs.append((absolute, dest_root / absolute.relative_to(source_dir)))
        return pairs

    def _copy_if_changed(self, source: Path, destination: Path) -> bool:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if not files_differ(source, destination):
            return False
        shutil.copy(source, destination)
        return True


def sync_path(source_path: str | Path, target_dir: str | Path, dest: str = ".") -> list[str]:
    """Module-level shortcut for :meth:`Copier.sync_path`."""
    return Copier().sync_path(source_path, target_dir, dest)
