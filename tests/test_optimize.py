from pathlib import Path

import pytest

from image_converter.optimize import optimize_batch, optimize_image, summarize, target_path
from optimizer_shared.protocol import ImageFormat, OptimizeOptions


def test_target_path_uses_canonical_extension(tmp_path):
    src = tmp_path / "photo.jpeg"
    assert target_path(src, OptimizeOptions(format="jpg")) == tmp_path / "photo.jpg"
    out = tmp_path / "out"
    assert target_path(src, OptimizeOptions(output_dir=out)) == out / "photo.webp"


@pytest.mark.parametrize("fmt", list(ImageFormat))
def test_success_result_matches_files(make_image, tmp_path, fmt):
    src = make_image("photo.png")
    original = src.stat().st_size

    result = optimize_image(src, OptimizeOptions(format=fmt, output_dir=tmp_path / "out", keep_original=True))

    assert result.success, result.error
    out = Path(result.output_path)
    assert out.suffix == f".{fmt.extension}"
    assert out.exists()
    assert result.original_size == original
    assert result.optimized_size == out.stat().st_size
    assert result.reduction == round(((original - result.optimized_size) / original) * 100, 2)


def test_missing_input_is_a_failed_result(tmp_path):
    result = optimize_image(tmp_path / "nope.png")
    assert not result.success
    assert "not found" in result.error
    assert result.output_path == ""
    assert result.original_size == 0


def test_codec_failure_is_a_failed_result(tmp_path):
    src = tmp_path / "broken.png"
    src.write_bytes(b"garbage")
    result = optimize_image(src, OptimizeOptions(output_dir=tmp_path / "out"))
    assert not result.success
    assert result.error
    assert src.exists()
    assert not (tmp_path / "out" / "broken.webp").exists()


def test_output_dir_is_created(make_image, tmp_path):
    src = make_image("photo.png")
    out = tmp_path / "a" / "b"
    result = optimize_image(src, OptimizeOptions(output_dir=out))
    assert result.success
    assert Path(result.output_path).parent == out


def test_original_deleted_when_extension_changes(make_image):
    src = make_image("photo.png")
    result = optimize_image(src, OptimizeOptions(format="webp"))
    assert result.success
    assert not src.exists()
    assert Path(result.output_path) == src.with_suffix(".webp")


def test_keep_original_preserves_source(make_image):
    src = make_image("photo.png")
    result = optimize_image(src, OptimizeOptions(format="webp", keep_original=True))
    assert result.success
    assert src.exists()


def test_same_extension_skips_deletion(make_image):
    src = make_image("photo.webp")
    original = src.stat().st_size

    result = optimize_image(src, OptimizeOptions(format="webp"))

    assert result.success
    assert src.exists()
    assert Path(result.output_path) == src
    assert result.original_size == original
    assert result.optimized_size == src.stat().st_size


def test_uppercase_extension_counts_as_same(make_image):
    src = make_image("PHOTO.JPG")
    result = optimize_image(src, OptimizeOptions(format="jpg", output_dir=src.parent / "out"))
    assert result.success
    assert src.exists()


def test_reoptimizing_own_output_succeeds(make_image):
    src = make_image("photo.png")
    first = optimize_image(src, OptimizeOptions(format="webp"))
    second = optimize_image(first.output_path, OptimizeOptions(format="webp"))
    assert second.success
    assert second.output_path == first.output_path


def test_batch_of_three_pngs(make_image, tmp_path):
    inputs = [make_image(f"img{i}.png", seed=i) for i in range(3)]
    results = optimize_batch(inputs, OptimizeOptions(format="webp", quality=75, output_dir=tmp_path / "out"))

    assert len(results) == 3
    assert all(r.success for r in results)
    assert [Path(r.output_path).name for r in results] == ["img0.webp", "img1.webp", "img2.webp"]


def test_batch_keeps_going_after_failure(make_image, tmp_path):
    good = make_image("good.png")
    results = optimize_batch([tmp_path / "missing.png", good], OptimizeOptions(output_dir=tmp_path / "out"))

    assert len(results) == 2
    assert not results[0].success
    assert "not found" in results[0].error
    assert results[1].success
    assert results[1].input_path == str(good)


def test_parallel_batch_preserves_input_order(make_image, tmp_path):
    inputs = [make_image(f"img{i}.png", seed=i, size=(32 + i * 8, 32)) for i in range(6)]
    inputs.insert(3, tmp_path / "missing.png")

    results = optimize_batch(inputs, OptimizeOptions(output_dir=tmp_path / "out"), max_workers=4)

    assert [r.input_path for r in results] == [str(p) for p in inputs]
    assert [r.success for r in results] == [True, True, True, False, True, True, True]


def test_summarize_counts_only_successes(make_image, tmp_path):
    inputs = [make_image("a.png"), tmp_path / "missing.png"]
    results = optimize_batch(inputs, OptimizeOptions(output_dir=tmp_path / "out"))
    summary = summarize(results)

    assert (summary.total, summary.succeeded, summary.failed) == (2, 1, 1)
    assert summary.total_original_bytes == results[0].original_size
    assert summary.total_optimized_bytes == results[0].optimized_size
    assert summary.reduction == results[0].reduction
