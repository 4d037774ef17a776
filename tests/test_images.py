from sellfast.wizard.images import ImageUpload, add_images, remove_image

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def test_add_images_as_data_uris_in_order():
    result = add_images([], [ImageUpload("a.png", PNG), ImageUpload("b.jpg", b"jpeg")])
    assert result.added == 2
    assert result.error is None
    assert result.images[0].startswith("data:image/png;base64,")
    assert result.images[1].startswith("data:image/jpeg;base64,")


def test_oversized_and_non_images_are_skipped():
    big = ImageUpload("huge.png", b"x" * (1024 * 1024 + 1))
    doc = ImageUpload("notes.txt", b"hello")
    ok = ImageUpload("ok.png", PNG)

    result = add_images([], [big, doc, ok])
    assert result.added == 1
    assert result.errors == [
        "huge.png exceeds 1MB limit. Please compress it.",
        "notes.txt is not an image file.",
    ]


def test_explicit_content_type_wins():
    result = add_images([], [ImageUpload("upload", PNG, content_type="image/webp")])
    assert result.images[0].startswith("data:image/webp;base64,")


def test_limit_rejects_whole_batch():
    existing = [f"data:image/png;base64,{i}" for i in range(9)]
    result = add_images(existing, [ImageUpload("a.png", PNG), ImageUpload("b.png", PNG)])
    assert result.added == 0
    assert result.images == existing
    assert result.error == "You can only upload up to 10 images. You already have 9 image(s)."

    result = add_images(existing, [ImageUpload("a.png", PNG)])
    assert len(result.images) == 10


def test_remove_image_by_index():
    assert remove_image(["a", "b", "c"], 1) == ["a", "c"]
    assert remove_image(["a"], 5) == ["a"]
