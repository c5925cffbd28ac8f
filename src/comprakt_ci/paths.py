"""Canonical base directory of an invoked script, independent of symlinks."""

import os
from pathlib import Path
from typing import Union


def resolve_base_dir(script_path: Union[str, Path]) -> Path:
    """
    Return the absolute directory holding the real file behind `script_path`.

    Follows one symlink level at a time: each relative link target is
    interpreted against the directory of the link itself. Only the final
    file is located this way; symlinked parent directories are resolved by
    the last step. OS errors (dangling links, unreadable directories)
    propagate unchanged.
    """
    current = Path(os.path.abspath(script_path))

    while current.is_symlink():
        target = Path(os.readlink(current))
        if not target.is_absolute():
            target = current.parent / target
        current = Path(os.path.abspath(target))

    return current.parent.resolve(strict=True)
