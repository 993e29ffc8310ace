from pathlib import Path

import pytest

from optimizer_shared.protocol import (
    ImageFormat,
    OptimizeOptions,
    OptimizeResult,
    OptionsError,
    compute_reduction,
    parse_optimize_options,
)


def test_jpg_extension_is_never_jpeg():
    assert ImageFormat.JPG.extension == "jpg"
    assert ImageFormat.parse("JPG") is ImageFormat.JPG
    with pytest.raises(OptionsError):
        ImageFormat.parse("jpeg")


def test_format_defaults_to_webp():
    assert ImageFormat.parse(None) is ImageFormat.WEBP
    assert ImageFormat.parse("") is ImageFormat.WEBP
    assert OptimizeOptions().format is ImageFormat.WEBP


def test_options_normalize_format_and_output_dir():
    options = OptimizeOptions(format="png", output_dir="out")
    assert options.format is ImageFormat.PNG
    assert options.output_dir == Path("out")
    assert options.quality == 75
    assert options.keep_original is False


def test_parse_form_fields():
    options = parse_optimize_options({"quality": "40", "format": "jpg", "keepOriginal": "true"})
    assert options.quality == 40
    assert options.format is ImageFormat.JPG
    assert options.keep_original is True


def test_parse_form_defaults():
    options = parse_optimize_options({}, default_quality=60)
    assert options.quality == 60
    assert options.format is ImageFormat.WEBP
    assert options.keep_original is False
    assert parse_optimize_options({"keepOriginal": "yes"}).keep_original is False


@pytest.mark.parametrize("form", [{"quality": "high"}, {"format": "gif"}])
def test_parse_form_rejects_bad_values(form):
    with pytest.raises(OptionsError):
        parse_optimize_options(form)


def test_reduction_rounding_and_sign():
    assert compute_reduction(1000, 750) == 25.0
    assert compute_reduction(3, 1) == round((2 / 3) * 100, 2)
    assert compute_reduction(100, 150) == -50.0
    assert compute_reduction(0, 10) == 0.0


def test_succeeded_result_computes_reduction():
    r = OptimizeResult.succeeded("a.png", "a.webp", 2000, 500)
    assert r.success
    assert r.reduction == 75.0
    assert r.error is None
    assert "error" not in r.to_dict()


def test_failed_result_is_zeroed():
    r = OptimizeResult.failed(Path("missing.png"), "Input file not found: missing.png")
    assert not r.success
    assert r.output_path == ""
    assert (r.original_size, r.optimized_size, r.reduction) == (0, 0, 0.0)
    assert r.to_dict()["error"].startswith("Input file not found")


def test_result_invariants_are_enforced():
    with pytest.raises(ValueError):
        OptimizeResult(input_path="a.png", success=True)
    with pytest.raises(ValueError):
        OptimizeResult(input_path="a.png", success=False)
