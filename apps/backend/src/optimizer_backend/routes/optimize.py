"""Upload, optimize and download route."""

from __future__ import annotations

import logging
import time

from flask import Blueprint, Response, current_app, jsonify, request

from image_converter import ArchiveError
from optimizer_shared.protocol import OptionsError, parse_optimize_options

from ..services import BatchOutcome, OptimizeService, RequestWorkspace, UploadTooLarge

logger = logging.getLogger(__name__)

SPOOL_BLOCK_SIZE = 64 * 1024

optimize_bp = Blueprint("optimize", __name__)


def _error(status: int, error: str, **extra):
    return jsonify({"error": error, **extra}), status


def _download_headers(outcome: BatchOutcome) -> dict[str, str]:
    stamp = int(time.time() * 1000)
    return {
        "Content-Disposition": f'attachment; filename="imagens-otimizadas-{stamp}.zip"',
        "X-Failed-Count": str(outcome.failed_count),
    }


def _archive_response(
    service: OptimizeService,
    workspace: RequestWorkspace,
    outcome: BatchOutcome,
) -> tuple[Response, bool]:
    """
    Build the ZIP response for the configured archive mode.

    Returns the response and whether the workspace cleanup was handed
    to it (it then runs when the body has been sent).
    """
    builder = service.archive_builder(outcome)
    headers = _download_headers(outcome)
    mode = service.config.archive_mode

    if mode == "buffered":
        payload = builder.build_bytes()
        headers["Content-Length"] = str(len(payload))
        return Response(payload, mimetype="application/zip", headers=headers), False

    if mode == "spooled":
        size = builder.write_to(workspace.archive_path)
        headers["Content-Length"] = str(size)

        def send_spooled():
            try:
                with workspace.archive_path.open("rb") as f:
                    for block in iter(lambda: f.read(SPOOL_BLOCK_SIZE), b""):
                        yield block
            finally:
                workspace.cleanup()

        response = Response(send_spooled(), mimetype="application/zip", headers=headers)
        response.call_on_close(workspace.cleanup)
        return response, True

    chunks = builder.iter_chunks()
    # Pull the first entry here so early archive errors still get a JSON 500.
    first = next(chunks, b"")

    def generate():
        try:
            yield first
            yield from chunks
        except ArchiveError:
            logger.exception("Archive stream for %s failed after headers were sent", workspace.token)
            raise
        finally:
            workspace.cleanup()

    response = Response(generate(), mimetype="application/zip", headers=headers)
    response.call_on_close(workspace.cleanup)
    return response, True


@optimize_bp.post("/optimize")
def optimize():
    """Optimize uploaded images and return them as a ZIP archive."""
    service: OptimizeService = current_app.config["optimize_service"]
    config = service.config

    files = [f for f in request.files.getlist("images") if f and f.filename]
    logger.info("Received optimize request with %d file(s)", len(files))

    if not files:
        return _error(400, "No images were sent")
    if len(files) > config.max_files:
        return _error(400, f"Too many files. Maximum: {config.max_files}")

    try:
        options = parse_optimize_options(request.form, config.default_quality)
    except OptionsError as e:
        return _error(400, str(e))

    try:
        workspace = service.open_workspace()
    except OSError as e:
        logger.exception("Failed to create request workspace")
        return _error(500, "Failed to process images", message=str(e))

    handed_off = False
    try:
        outcome = service.run_batch(workspace, files, options)

        if not outcome.output_paths:
            logger.warning("No image was optimized: %s", outcome.error_details())
            return _error(
                400,
                "No images were optimized successfully",
                details=outcome.error_details(),
            )

        response, handed_off = _archive_response(service, workspace, outcome)
        return response
    except UploadTooLarge as e:
        return _error(400, str(e))
    except ArchiveError as e:
        logger.exception("Failed to create ZIP archive")
        return _error(500, "Failed to create ZIP archive", message=str(e))
    except Exception as e:
        logger.exception("Failed to process images")
        return _error(500, "Failed to process images", message=str(e))
    finally:
        if not handed_off:
            workspace.cleanup()
