import os
import shutil
import uuid
from pathlib import Path

from oh_my_skills.constants import RETIRED_MARKER, STAGING_MARKER


def remove_path(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    if path.is_dir():
        shutil.rmtree(path)


def path_exists(path: Path) -> bool:
    return path.exists() or path.is_symlink()


def sibling_path(target: Path, marker: str) -> Path:
    return target.parent / f".{target.name}{marker}{uuid.uuid4().hex[:8]}"


def staging_dir_for(target: Path) -> Path:
    return sibling_path(target, STAGING_MARKER)


def swap_into_place(staged: Path, target: Path) -> None:
    """Replace ``target`` with ``staged`` using renames only."""
    if not path_exists(target):
        os.replace(staged, target)
        return

    retired = sibling_path(target, RETIRED_MARKER)
    os.replace(target, retired)
    try:
        os.replace(staged, target)
    except OSError:
        os.replace(retired, target)
        raise
    remove_path(retired)

