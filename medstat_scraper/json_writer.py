from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union


logger = logging.getLogger(__name__)


def ensure_output_dir(output_dir: Union[str, Path]) -> Path:
    path = Path(output_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(output_dir: Union[str, Path], filename: str, data: Any) -> Path:
    """Pretty-print ``data`` to ``output_dir/filename``, creating the directory."""
    path = ensure_output_dir(output_dir) / filename
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Saved: %s", path)
    return path
