import re
import zipfile
from pathlib import Path
from typing import Any


def format_filename(app_name: str) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", (app_name or "").lower())
    slug = re.sub(r"-+", "-", slug).strip("-")
    return f"{slug or 'generated-app'}.zip"


def write_project_zip(project: dict[str, Any], path: str | Path) -> Path:
    """Write every generated file of a results payload into a zip archive."""
    path = Path(path)
    if path.is_dir():
        path = path / format_filename(project.get("projectName", ""))

    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for f in project.get("files", []):
            if not f.get("content"):
                continue
            arcname = str(f["path"]).lstrip("/")
            if ".." in Path(arcname).parts:
                raise ValueError(f"Refusing to write file outside the archive root: {f['path']}")
            zf.writestr(arcname, f["content"])
    return path
