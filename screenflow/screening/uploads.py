"""
Three-step asset upload: presign -> direct PUT to object storage -> register.

Only the registration call is retried (see ScreeningClient.create_asset and
upload_documents_to_income_source); presign and transfer fail the run on the
first error.
"""
import os
from typing import Optional

import httpx

from screenflow.errors import ConfigurationError, RemoteServiceError, UploadError
from screenflow.observability.logging import EventLogger
from screenflow.screening.client import ScreeningClient

CONTENT_TYPE_PDF = "application/pdf"
CONTENT_TYPE_SVG = "image/svg+xml"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"


def content_type_for(filename: str) -> str:
    lower = filename.lower()
    if lower.endswith(".pdf"):
        return CONTENT_TYPE_PDF
    if lower.endswith(".svg"):
        return CONTENT_TYPE_SVG
    return CONTENT_TYPE_OCTET_STREAM


def read_file_bytes(path: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise ConfigurationError(f"Failed to read file {path}: {e}") from e


def upload_to_presigned_url(
    url: str,
    data: bytes,
    content_type: Optional[str] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    timeout_sec: float = 60.0,
) -> httpx.Response:
    headers = {}
    if content_type:
        headers["Content-Type"] = content_type
    with httpx.Client(transport=transport, timeout=timeout_sec) as client:
        resp = client.put(url, content=data, headers=headers)
    if not resp.is_success:
        raise UploadError(f"Failed to upload file to storage: {resp.status_code} {resp.reason_phrase}")
    return resp


def _metadata(size: int, filename: str, content_type: str) -> dict:
    return {"size": size, "original_filename": filename, "content_type": content_type}


def upload_signature(
    client: ScreeningClient,
    application_id: str,
    file_path: str,
    logger: EventLogger,
    *,
    storage_transport: Optional[httpx.BaseTransport] = None,
) -> str:
    """Upload a signature image and return the asset's global_id."""
    filename = os.path.basename(file_path) or "signature.svg"
    content_type = CONTENT_TYPE_SVG

    logger.info("signature_presign", filename=filename)
    presign = client.get_presigned_url(filename, content_type)

    data = read_file_bytes(file_path)
    logger.info("signature_upload", url=presign.url, size=len(data))
    upload_to_presigned_url(presign.url, data, content_type, transport=storage_transport)

    payload = {"url": presign.url, "metadata": _metadata(len(data), filename, content_type)}
    asset = client.create_asset(application_id, payload)
    if asset.asset is None or not asset.asset.global_id:
        logger.error("signature_asset_missing_id")
        raise RemoteServiceError("Failed to get asset ID from asset creation response", endpoint="/screen/assets")

    logger.info("signature_asset_created", assetId=asset.asset.global_id)
    return asset.asset.global_id


def upload_income_document(
    client: ScreeningClient,
    application_id: str,
    verification_id: str,
    income_source_id: str,
    file_path: str,
    document_type: str,
    logger: EventLogger,
    *,
    storage_transport: Optional[httpx.BaseTransport] = None,
) -> Optional[str]:
    """Upload a document to an income source. Returns the first asset id, if any."""
    if not income_source_id:
        raise ConfigurationError("incomeSourceId is required for document upload")

    filename = os.path.basename(file_path) or "document.pdf"
    content_type = content_type_for(filename)

    logger.info("document_presign", filename=filename)
    presign = client.get_presigned_url(filename, content_type)

    data = read_file_bytes(file_path)
    logger.info("document_upload", url=presign.url, size=len(data))
    upload_to_presigned_url(presign.url, data, content_type, transport=storage_transport)

    payload = {
        "documents": [
            {
                "document_type": document_type,
                "url": presign.url,
                "metadata": _metadata(len(data), filename, content_type),
            }
        ]
    }
    docs = client.upload_documents_to_income_source(application_id, verification_id, income_source_id, payload)
    items = docs.assets.items if docs.assets else []
    if items:
        logger.info("document_registered", assetId=items[0].global_id, incomeSourceId=income_source_id)
        return items[0].global_id
    logger.warning("document_registered_without_assets", incomeSourceId=income_source_id)
    return None
