"""
Folders router — the fixed project folder structure.

GET /folders — every top-level folder with its children. The tree is
identical for every project and never changes at runtime.
"""

from fastapi import APIRouter

from portal_admin.auth.dependencies import Admin
from portal_admin.core.folders import (
    PROJECT_FOLDER_STRUCTURE,
    Folder,
    folder_display_name,
    is_admin_only_folder_path,
    visible_folder_paths,
)
from portal_admin.schemas.folders import FolderOut

router = APIRouter(tags=["Folders"])


def folder_out(folder: Folder, visible: set[str] | None = None) -> FolderOut:
    """Response view of a folder and its children."""
    if visible is None:
        visible = set(visible_folder_paths())
    return FolderOut(
        name=folder.name,
        path=folder.path,
        display_name=folder_display_name(folder.path),
        admin_only=is_admin_only_folder_path(folder.path),
        visible_in_editor=folder.path in visible,
        children=[folder_out(child, visible) for child in folder.children],
    )


@router.get(
    "",
    response_model=list[FolderOut],
    summary="Project folder structure",
)
async def list_folders(_admin: Admin) -> list[FolderOut]:
    visible = set(visible_folder_paths())
    return [folder_out(folder, visible) for folder in PROJECT_FOLDER_STRUCTURE]
