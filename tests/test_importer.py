"""
Tests for local folder imports and upload registration.
"""

import pytest

from core.errors import ValidationError
from core.importer import (
    build_link, import_local_directory, is_image_file, register_upload
)


@pytest.fixture
def folder(tmp_path, png_bytes):
    path = tmp_path / "shots"
    path.mkdir()
    for name in ["img10.png", "img2.JPG", "img1.jpeg"]:
        (path / name).write_bytes(png_bytes)
    (path / "notes.txt").write_text("not an image")
    (path / "nested.png").mkdir()
    return path


@pytest.mark.parametrize("name,expected", [
    ("a.jpg", True),
    ("a.JPEG", True),
    ("a.Png", True),
    ("a.gif", False),
    ("a.txt", False),
    ("jpg", False),
])
def test_is_image_file(name, expected):
    assert is_image_file(name) is expected


def test_build_link():
    assert build_link(3, 17, "Cat.JPG") == "/uploads/3/17.jpg"


class TestImportLocalDirectory:

    def test_imports_images_in_natural_order(self, image_store, project, folder):
        ids = import_local_directory(image_store, project.id, str(folder))

        images = [image_store.get(i) for i in ids]
        assert [img.original_name for img in images] == ["img1.jpeg", "img2.JPG", "img10.png"]
        assert images[1].local_path == str(folder.resolve() / "img2.JPG")

    def test_every_image_gets_a_link_and_starts_unlabeled(self, image_store, project, folder):
        ids = import_local_directory(image_store, project.id, str(folder))

        for image_id in ids:
            image = image_store.get(image_id)
            assert image.link == build_link(project.id, image_id, image.original_name)
            assert image.labeled is False

    def test_folder_without_images(self, image_store, project, tmp_path):
        (tmp_path / "a.txt").write_text("a")
        (tmp_path / "b.txt").write_text("b")

        with pytest.raises(ValidationError, match="no image files"):
            import_local_directory(image_store, project.id, str(tmp_path))
        assert image_store.get_for_project(project.id) == []

    def test_missing_folder(self, image_store, project, tmp_path):
        with pytest.raises(ValidationError):
            import_local_directory(image_store, project.id, str(tmp_path / "nope"))


class TestRegisterUpload:

    def test_register_upload(self, image_store, project):
        image_id, stored_name = register_upload(image_store, project.id, "Holiday.PNG")

        image = image_store.get(image_id)
        assert stored_name == f"{image_id}.png"
        assert image.link == f"/uploads/{project.id}/{image_id}.png"
        assert image.local_path is None
        assert image.original_name == "Holiday.PNG"

    def test_rejects_non_images(self, image_store, project):
        with pytest.raises(ValidationError):
            register_upload(image_store, project.id, "report.pdf")
