"""Unit tests for portal_admin.core.folders — folder tree and path conventions."""

from portal_admin.core.folders import (
    ADMIN_ONLY_FOLDER,
    CUSTOMER_UPLOADS_FOLDER,
    NEW_NOT_VIEWED_FOLDER,
    all_folder_paths,
    default_files_folder_path,
    file_document_path,
    files_collection_path,
    folder_display_name,
    folder_path_id,
    in_tree,
    is_admin_only_folder_path,
    is_valid_folder_path,
    scope_folder,
    status_document_id,
    visible_folder_paths,
)


class TestFolderSets:
    def test_parents_precede_children(self):
        paths = all_folder_paths()
        assert paths[0] == NEW_NOT_VIEWED_FOLDER
        assert paths.index("02_Photos") < paths.index("02_Photos/Before")
        assert len(paths) == len(set(paths))

    def test_valid_paths(self):
        assert is_valid_folder_path("03_Reports/Daily_Reports")
        assert not is_valid_folder_path("03_Reports/Nope")
        assert not is_valid_folder_path("")

    def test_admin_only(self):
        assert is_admin_only_folder_path(ADMIN_ONLY_FOLDER)
        assert is_admin_only_folder_path(f"{ADMIN_ONLY_FOLDER}/prices")
        assert not is_admin_only_folder_path("09_Admin_Only_Other")

    def test_in_tree_is_segment_aware(self):
        assert in_tree(CUSTOMER_UPLOADS_FOLDER, CUSTOMER_UPLOADS_FOLDER)
        assert in_tree(f"{CUSTOMER_UPLOADS_FOLDER}/Photos", CUSTOMER_UPLOADS_FOLDER)
        assert not in_tree("02_Photos", CUSTOMER_UPLOADS_FOLDER)

    def test_visible_excludes_inbox_and_uploads(self):
        visible = visible_folder_paths()
        assert NEW_NOT_VIEWED_FOLDER not in visible
        assert not any(in_tree(p, CUSTOMER_UPLOADS_FOLDER) for p in visible)
        assert default_files_folder_path() == "02_Photos/Before"

    def test_scope_folder(self):
        assert scope_folder("02_Photos/After").path == "02_Photos"
        assert scope_folder("08_General").path == "08_General"
        assert scope_folder(CUSTOMER_UPLOADS_FOLDER) is None

    def test_display_names(self):
        assert folder_display_name(CUSTOMER_UPLOADS_FOLDER) == "Customer Uploads"
        assert folder_display_name("03_Reports/Weekly_Reports") == "Weekly_Reports"


class TestPathConventions:
    def test_folder_path_id(self):
        assert folder_path_id("02_Photos/Before") == "02_Photos__Before"
        assert folder_path_id("/02_Photos//Before/") == "02_Photos__Before"

    def test_files_collection_path(self):
        assert files_collection_path("p1", "03_Reports/Daily_Reports") == (
            "files/projects/p1/03_Reports__Daily_Reports/files"
        )
        assert file_document_path("p1", "08_General", "f9") == "files/projects/p1/08_General/files/f9"

    def test_status_document_id(self):
        assert status_document_id("projects/p1/02_Photos/a.jpg") == "projects__p1__02_Photos__a.jpg"
