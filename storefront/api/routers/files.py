# storefront/api/routers/files.py
from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from storefront.api.deps import get_blob_store, get_current_user
from storefront.domain.caller import Caller
from storefront.domain.schemas import Envelope, UploadOut
from storefront.services.blob_store import BlobStore
from storefront.services.product_service import check_image_upload

router = APIRouter(tags=["files"])


@router.post("/upload", response_model=Envelope[UploadOut])
def upload_image(
    file: UploadFile = File(...),
    user: Caller = Depends(get_current_user),
    blob_store: BlobStore = Depends(get_blob_store),
):
    data = file.file.read()
    check_image_upload(data, file.content_type)
    return {"success": True, "data": blob_store.upload(data, file.content_type, file.filename or "upload")}


@router.get("/files/{key:path}")
def get_file(key: str, blob_store: BlobStore = Depends(get_blob_store)):
    blob = blob_store.fetch_stream(key)
    headers = {}
    if blob.content_length is not None:
        headers["Content-Length"] = str(blob.content_length)
    return StreamingResponse(blob.chunks, media_type=blob.content_type, headers=headers)
