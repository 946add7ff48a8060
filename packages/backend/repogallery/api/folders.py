from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..services.gallery import Gallery
from ._utils import current_gallery

router = APIRouter()


class FolderIn(BaseModel):
    name: str


class ActiveFolder(BaseModel):
    folder: str | None = None


def _folders(g: Gallery) -> dict:
    return {"folders": list(g.index.folders), "active": g.index.active_folder}


@router.get("")
async def list_folders(g: Gallery = Depends(current_gallery)):
    return _folders(g)


@router.post("")
async def create_folder(body: FolderIn, g: Gallery = Depends(current_gallery)):
    folder_id = await g.folders.create(body.name)
    await g.index.wait_loaded()
    return {"created": folder_id, **_folders(g)}


@router.post("/refresh")
async def refresh_folders(g: Gallery = Depends(current_gallery)):
    await g.index.refresh()
    return _folders(g)


@router.put("/active")
async def select_folder(body: ActiveFolder, g: Gallery = Depends(current_gallery)):
    g.index.select_folder(body.folder)
    await g.index.wait_loaded()
    return _folders(g)


@router.get("/operations")
async def list_operations(limit: int = 20, g: Gallery = Depends(current_gallery)):
    return [op.__dict__ for op in g.folders.list_operations(limit=limit)]


@router.patch("/{folder_id}")
async def rename_folder(
    folder_id: str, body: FolderIn, g: Gallery = Depends(current_gallery)
):
    op = await g.folders.rename(folder_id, body.name)
    await g.index.wait_loaded()
    return {"operation": op.__dict__ if op else None, **_folders(g)}


@router.delete("/{folder_id}")
async def delete_folder(folder_id: str, g: Gallery = Depends(current_gallery)):
    op = await g.folders.delete(folder_id)
    await g.index.wait_loaded()
    return {"operation": op.__dict__, **_folders(g)}
