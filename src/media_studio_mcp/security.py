from pathlib import Path


def is_within(path: Path, root: Path) -> bool:
    """
    Checks that ``path`` resolves to a location inside ``root``.
    """
    try:
        return path.resolve().is_relative_to(root.resolve())
    except (ValueError, RuntimeError, OSError):
        return False


def is_safe_artifact_id(artifact_id: str) -> bool:
    if not artifact_id or artifact_id in (".", ".."):
        return False
    return "/" not in artifact_id and "\\" not in artifact_id and "\x00" not in artifact_id
