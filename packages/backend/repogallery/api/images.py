from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from ..services.gallery import Gallery
from ..services.uploads import FilePayload
from ._utils import current_gallery, validate_sort

router = APIRouter()


@router.get("")
async def list_images(
    q: str | None = Query(default=None),
    sort: str | None = Query(default=None),
    page: int | None = Query(default=None, ge=1),
    g: Gallery = Depends(current_gallery),
):
    idx = g.index
    if q is not None and q != idx.filter:
        # a new filter always starts again from page 1
        idx.set_filter(q)
    if sort is not None:
        idx.set_sort(validate_sort(sort))
    if page is not None:
        idx.set_page(page)
    view = idx.view()
    return {
        "folder": idx.active_folder,
        "loading": idx.loading,
        "filter": idx.filter,
        "sort": idx.sort,
        "page_size": idx.page_size,
        **view.model_dump(),
    }


@router.post("")
async def upload_images(
    files: list[UploadFile] = File(...),
    folder: str | None = Form(default=None),
    g: Gallery = Depends(current_gallery),
):
    target = folder or g.index.active_folder
    if not target:
        raise HTTPException(status_code=400, detail="No folder selected")
    payloads = [
        FilePayload(name=f.filename or "", data=await f.read()) for f in files
    ]
    results = await g.images.upload(payloads, target)
    return {"folder": target, "results": [r.__dict__ for r in results]}


@router.delete("/{image_path:path}")
async def delete_image(image_path: str, g: Gallery = Depends(current_gallery)):
    image = g.index.find_image(image_path)
    if image is None:
        raise HTTPException(status_code=404, detail="Image not loaded")
    await g.images.delete(image)
    return {"removed": image_path}
