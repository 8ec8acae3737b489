"""Uploads of connector plugin and Flink artifact archives to presigned URLs."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests

from ccloud.core.exceptions import UploadError
from ccloud.utils.logging import get_logger, log_error

logger = get_logger(__name__)

# Connect and per-read timeout of an upload. requests has no whole-transfer
# deadline, so a transfer that keeps making progress may run longer.
UPLOAD_TIMEOUT_SECONDS = 20 * 60

CONTENT_TYPES = {
    "zip": "application/zip",
    "jar": "application/java-archive",
}


def content_type_for(file_extension: str) -> str:
    return CONTENT_TYPES.get(file_extension.lower(), "")


def upload_file(
    url: str,
    file_path: str | Path,
    form_fields: Mapping[str, Any],
    file_extension: str,
    cloud: str,
    is_flink_artifact: bool = False,
    session: requests.Session | None = None,
) -> None:
    """Upload an archive to the presigned URL returned by the upload API.

    GCP URLs, and Azure URLs for Flink artifacts, take the raw archive in a
    PUT. Every other URL takes a multipart form POST with the string form
    fields followed by the archive as ``file``.

    Args:
        url: Presigned upload URL
        file_path: Archive to upload
        form_fields: Form fields returned by the upload API
        file_extension: ``zip`` or ``jar``
        cloud: Cloud provider of the upload URL (``AWS``, ``GCP``, ``AZURE``)
        is_flink_artifact: Whether the archive is a Flink artifact
        session: HTTP session (a plain ``requests`` call if omitted)

    Raises:
        UploadError: If the file cannot be read or the upload fails
    """
    path = Path(file_path)
    http = session or requests
    content_type = content_type_for(file_extension)

    logger.info("upload_started", cloud=cloud, file_name=path.name, is_flink_artifact=is_flink_artifact)
    try:
        with path.open("rb") as archive:
            if cloud == "GCP" or (cloud == "AZURE" and is_flink_artifact):
                headers = {"Content-Type": content_type}
                if cloud == "AZURE":
                    headers["x-ms-blob-type"] = "BlockBlob"
                response = http.put(
                    url, data=archive, headers=headers, timeout=UPLOAD_TIMEOUT_SECONDS
                )
            else:
                fields = {key: value for key, value in form_fields.items() if isinstance(value, str)}
                response = http.post(
                    url,
                    data=fields,
                    files={"file": (path.name, archive)},
                    timeout=UPLOAD_TIMEOUT_SECONDS,
                )
    except requests.RequestException as e:
        log_error(logger, e, operation="upload", file_name=path.name)
        raise UploadError(f"failed to upload {path.name}: {e}") from e
    except OSError as e:
        log_error(logger, e, operation="upload", file_name=path.name)
        raise UploadError(f"failed to read {path}: {e}") from e

    if not 200 <= response.status_code < 300:
        logger.error("upload_failed", file_name=path.name, status_code=response.status_code)
        raise UploadError(
            f"failed to upload {path.name}: HTTP {response.status_code} {response.reason or ''}".rstrip()
        )
    logger.info("upload_completed", file_name=path.name, status_code=response.status_code)
