"""
Fixed project folder structure and the path conventions built on it.

Every project has the same immutable folder tree. File metadata for a
folder lives in a synthetic collection whose id joins the folder segments
with a double underscore:

    files/projects/{projectId}/{segments joined by "__"}/files

Status records (read / approval) are keyed by the file's storage path
with "/" replaced by "__".
"""

from __future__ import annotations

from dataclasses import dataclass, field

NEW_NOT_VIEWED_FOLDER = "00_New_Not_Viewed_Yet_"
CUSTOMER_UPLOADS_FOLDER = "01_Customer_Uploads"
REPORTS_FOLDER = "03_Reports"
ADMIN_ONLY_FOLDER = "09_Admin_Only"

PATH_ID_SEPARATOR = "__"
PLACEHOLDER_FILE_NAME = ".keep"


@dataclass(frozen=True, slots=True)
class Folder:
    """One node of the fixed folder tree (at most one level of children)."""

    name: str
    path: str
    children: tuple["Folder", ...] = field(default_factory=tuple)


def _folder(name: str, *children: str) -> Folder:
    return Folder(
        name=name,
        path=name,
        children=tuple(Folder(name=c, path=f"{name}/{c}") for c in children),
    )


PROJECT_FOLDER_STRUCTURE: tuple[Folder, ...] = (
    _folder(NEW_NOT_VIEWED_FOLDER),
    _folder(CUSTOMER_UPLOADS_FOLDER, "Photos", "Documents", "Other"),
    _folder("02_Photos", "Before", "During_Work", "After", "Damages_and_Defects"),
    _folder(REPORTS_FOLDER, "Daily_Reports", "Weekly_Reports", "Acceptance_Protocols"),
    _folder("04_Emails", "Incoming", "Outgoing"),
    _folder("05_Quotations", "Drafts", "Approved", "Rejected"),
    _folder("06_Invoices", "Progress_Invoices", "Final_Invoices", "Credit_Notes"),
    _folder(
        "07_Delivery_Notes",
        "Material_Delivery_Notes",
        "Piecework_Delivery_Notes",
        "Reports_Linked_to_Delivery_Notes",
    ),
    _folder("08_General", "Contracts", "Plans", "Other_Documents"),
    # Private to staff: material prices, internal notes
    _folder(ADMIN_ONLY_FOLDER),
)

_VISIBLE_FOLDERS = tuple(
    f for f in PROJECT_FOLDER_STRUCTURE
    if f.path not in (NEW_NOT_VIEWED_FOLDER, CUSTOMER_UPLOADS_FOLDER)
)


# ── Folder sets ─────────────────────────────────────────────
def all_folder_paths() -> list[str]:
    """Every valid folder path, each parent followed by its children."""
    paths: list[str] = []
    for folder in PROJECT_FOLDER_STRUCTURE:
        paths.append(folder.path)
        paths.extend(child.path for child in folder.children)
    return paths


def is_valid_folder_path(folder_path: str) -> bool:
    return folder_path in set(all_folder_paths())


def is_admin_only_folder_path(folder_path: str) -> bool:
    """True for the admin-only folder or anything beneath it."""
    return folder_path == ADMIN_ONLY_FOLDER or folder_path.startswith(f"{ADMIN_ONLY_FOLDER}/")


def is_report_folder(folder_path: str) -> bool:
    return folder_path.startswith(REPORTS_FOLDER)


def in_tree(folder_path: str, root: str) -> bool:
    """True when folder_path is root or one of its children."""
    return folder_path == root or folder_path.startswith(f"{root}/")


def visible_folder_paths() -> list[str]:
    """Folder paths shown in the project editor (no 00_ / 01_ trees)."""
    paths: list[str] = []
    for folder in _VISIBLE_FOLDERS:
        paths.append(folder.path)
        paths.extend(child.path for child in folder.children)
    return paths


def scope_folder(selected_path: str) -> Folder | None:
    """The visible top-level folder that is or contains selected_path."""
    for folder in _VISIBLE_FOLDERS:
        if selected_path == folder.path:
            return folder
        if any(child.path == selected_path for child in folder.children):
            return folder
    return None


def default_files_folder_path() -> str:
    """First visible folder's first child (or the folder itself)."""
    first = _VISIBLE_FOLDERS[0]
    return first.children[0].path if first.children else first.path


def folder_display_name(folder_path: str) -> str:
    if folder_path == CUSTOMER_UPLOADS_FOLDER:
        return "Customer Uploads"
    return folder_path.rsplit("/", 1)[-1] or folder_path


# ── Path conventions ────────────────────────────────────────
def folder_path_id(folder_path: str) -> str:
    """'02_Photos/Before' → '02_Photos__Before' (empty segments dropped)."""
    return PATH_ID_SEPARATOR.join(s for s in folder_path.split("/") if s)


def files_collection_path(project_id: str, folder_path: str) -> str:
    return f"files/projects/{project_id}/{folder_path_id(folder_path)}/files"


def file_document_path(project_id: str, folder_path: str, file_id: str) -> str:
    return f"{files_collection_path(project_id, folder_path)}/{file_id}"


def status_document_id(file_path: str) -> str:
    """Status record id for a storage path: '/' → '__'."""
    return file_path.replace("/", PATH_ID_SEPARATOR)


def storage_folder(project_id: str, folder_path: str) -> str:
    """Blob-store folder for a project folder."""
    return f"projects/{project_id}/{folder_path}"
