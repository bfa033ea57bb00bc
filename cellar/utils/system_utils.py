# cellar/utils/system_utils.py
import os
import shutil
from pathlib import Path

from cellar.core.constants import COPY_FILE_MODE
from cellar.utils.logger_utils import logger


class SystemUtils:
    """A collection of static helpers for the filesystem work behind containers."""

    @staticmethod
    def copy_tree(src: Path, dst: Path, mode: int = COPY_FILE_MODE) -> bool:
        """
        Copies the contents of src into dst (which may already exist) and forces
        `mode` on every copied file and directory. Symlinks are copied as links.
        Returns True on success, False if any entry could not be copied.
        """
        try:
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
            os.chmod(dst, mode)
            for dirpath, dirnames, filenames in os.walk(dst):
                for entry in dirnames + filenames:
                    entry_path = os.path.join(dirpath, entry)
                    # chmod on a link would follow it out of the tree
                    if not os.path.islink(entry_path):
                        os.chmod(entry_path, mode)
            return True
        except (OSError, shutil.Error) as e:
            logger.error(f"Failed to copy '{src}' to '{dst}': {e}")
            return False

    @staticmethod
    def copy_file(src: Path, dst: Path):
        """Copies a single file, creating the destination's parents. Raises OSError."""
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)

    @staticmethod
    def delete_path(path: Path) -> bool:
        """
        Recursively deletes a file, link, or directory tree.
        A path that is already gone counts as deleted.
        """
        try:
            if path.is_symlink() or path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)
            return True
        except OSError as e:
            logger.error(f"Failed to delete '{path}': {e}")
            return False

    @staticmethod
    def get_file_suffix(path: Path) -> str:
        """Returns the text after the last dot of the file name, lowercased."""
        name = path.name
        return name.rsplit(".", 1)[1].lower() if "." in name else ""
