from __future__ import annotations

import logging
import os
import ssl
import subprocess
import urllib.request

logger = logging.getLogger(__name__)

HAND_LANDMARKER_TASK_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/latest/hand_landmarker.task"
)


def _ssl_context() -> ssl.SSLContext:
    # python.org macOS builds often lack root certificates; certifi fixes that when present.
    try:
        import certifi  # type: ignore

        return ssl.create_default_context(cafile=certifi.where())
    except ImportError:
        return ssl.create_default_context()


def _remove_partial(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.debug("Could not remove partial download %s: %s", path, e)


def ensure_hand_landmarker_task(model_path: str, *, url: str = HAND_LANDMARKER_TASK_URL, timeout_s: int = 30) -> str:
    """
    Return `model_path`, downloading the MediaPipe hand landmarker model there first if missing.

    Tries urllib, then `curl`; raises RuntimeError with manual instructions if both fail.
    """

    if os.path.exists(model_path):
        return model_path

    os.makedirs(os.path.dirname(model_path) or ".", exist_ok=True)
    logger.info("Downloading hand landmarker model to %s", model_path)

    try:
        with urllib.request.urlopen(url, context=_ssl_context(), timeout=timeout_s) as r, open(model_path, "wb") as f:
            f.write(r.read())
        return model_path
    except Exception as e:
        _remove_partial(model_path)
        first_error = e
        logger.debug("urllib download failed (%s); trying curl", e)

    curl_err = ""
    try:
        proc = subprocess.run(
            ["curl", "-L", "-o", model_path, url],
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
        if proc.returncode == 0 and os.path.exists(model_path) and os.path.getsize(model_path) > 0:
            return model_path
        curl_err = proc.stderr.strip()
    except OSError as e:
        curl_err = str(e)
    _remove_partial(model_path)

    raise RuntimeError(
        "Missing MediaPipe hand landmarker model and auto-download failed.\n\n"
        f"Expected model at: {model_path}\n"
        f"URL: {url}\n\n"
        "Download it manually:\n"
        f'  mkdir -p "{os.path.dirname(model_path) or "."}"\n'
        f'  curl -L -o "{model_path}" "{url}"\n'
        + (f"\ncurl stderr:\n{curl_err}\n" if curl_err else "")
    ) from first_error
