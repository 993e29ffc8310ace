from optimizer_shared.files import (
    find_images,
    is_image_name,
    is_in_dir,
    remove_tree_quietly,
    safe_upload_name,
)


def test_is_image_name_is_case_insensitive():
    assert is_image_name("PHOTO.JPEG")
    assert not is_image_name("notes.txt")
    assert not is_image_name("archive")


def test_is_in_dir(tmp_path):
    assert is_in_dir(tmp_path, tmp_path / "item-0" / "a.png")
    assert not is_in_dir(tmp_path / "item-0", tmp_path / "item-0" / ".." / "a.png")


def test_safe_upload_name_strips_directories():
    assert safe_upload_name("../../etc/photo.png", "upload-0") == "etc_photo.png"


def test_safe_upload_name_falls_back_when_nothing_is_left():
    assert safe_upload_name("../..", "upload-3") == "upload-3"
    assert safe_upload_name(None, "upload-4") == "upload-4"


def test_safe_upload_name_falls_back_when_the_stem_is_lost():
    assert safe_upload_name("写真.jpg", "upload-0") == "upload-0.jpg"
    assert safe_upload_name("фото.JPEG", "upload-1") == "upload-1.jpeg"


def test_find_images_sorted_and_filtered(tmp_path):
    (tmp_path / "b.png").write_bytes(b"x")
    (tmp_path / "a.JPG").write_bytes(b"x")
    (tmp_path / "readme.md").write_text("x")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.webp").write_bytes(b"x")

    assert [p.name for p in find_images(tmp_path)] == ["a.JPG", "b.png", "c.webp"]
    assert [p.name for p in find_images(tmp_path, recursive=False)] == ["a.JPG", "b.png"]


def test_remove_tree_quietly_is_idempotent(tmp_path):
    target = tmp_path / "work"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "a.png").write_bytes(b"x")

    remove_tree_quietly(target)
    remove_tree_quietly(target)

    assert not target.exists()
