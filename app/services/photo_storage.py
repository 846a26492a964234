"""
Photo Storage — blob store for inspection photos.

Files land in PHOTO_UPLOAD_FOLDER under a random name and are served back
through ``GET /api/v1/photos/<name>``. The core only ever sees the public
URL; pixel data is never inspected.

``upload`` either returns a URL or raises UploadError — there is no partial
result, so callers attach the photo reference only after it returns.
"""

from __future__ import annotations

import logging
import os
import uuid

from flask import current_app, url_for
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from app.core.exceptions import UploadError

logger = logging.getLogger(__name__)


def _upload_folder() -> str:
    folder = current_app.config["PHOTO_UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def _extension(filename: str) -> str:
    safe = secure_filename(filename or "")
    return safe.rsplit(".", 1)[-1].lower() if "." in safe else ""


def upload(file: FileStorage | None) -> str:
    """Store ``file`` and return its public URL."""
    if file is None or not file.filename:
        raise UploadError("Nenhum arquivo enviado")

    ext = _extension(file.filename)
    allowed = current_app.config.get("PHOTO_ALLOWED_EXTENSIONS") or frozenset()
    if ext not in allowed:
        raise UploadError(
            f"Formato de imagem não suportado: '{ext or file.filename}'. "
            f"Use: {', '.join(sorted(allowed))}"
        )

    name = f"{uuid.uuid4().hex}.{ext}"
    path = os.path.join(_upload_folder(), name)
    try:
        file.save(path)
    except OSError as exc:
        logger.error("Photo upload failed: %s", exc)
        if os.path.exists(path):
            os.remove(path)
        raise UploadError(f"Falha ao gravar a foto: {exc}") from exc

    logger.info("Photo stored: %s", name)
    return url_for("reports.get_photo", name=name, _external=False)


def delete(url: str) -> None:
    """Best-effort removal of a stored photo by its public URL."""
    name = secure_filename(url.rsplit("/", 1)[-1])
    if not name:
        return
    path = os.path.join(_upload_folder(), name)
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.debug("Photo already absent: %s", name)
    except OSError:
        logger.warning("Could not remove photo %s", name, exc_info=True)


def photo_path(name: str) -> tuple[str, str]:
    """Return (folder, safe_name) for serving a stored photo."""
    return _upload_folder(), secure_filename(name)
