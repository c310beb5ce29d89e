from __future__ import annotations

import gzip
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Mapping, Optional, TextIO

logger = logging.getLogger(__name__)


def ensure_outdir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def open_textmaybe_gzip(path: str | Path, mode: str = "rt") -> TextIO:
    p = str(path)
    if p.endswith(".gz"):
        return gzip.open(p, mode)  # type: ignore[return-value]
    return open(p, mode)


def write_json(path: str | Path, obj: Any) -> None:
    with open(path, "wt", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, sort_keys=True)


def dataclass_to_jsonable(dc: Any) -> Mapping[str, Any]:
    return asdict(dc)


def safe_rate(numerator: int, denominator: int) -> Optional[float]:
    # None rather than 0.0 so "no het SNPs" is distinguishable from "no errors".
    if denominator <= 0:
        return None
    return numerator / denominator
