from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .acquisition import AcquisitionMode, ImageService, acquire
from .composite import save_rgba_png, to_rgba_image
from .config import BLACK_SUFFIX, IMAGE_EXTS, WHITE_SUFFIX
from .contracts import AcquisitionRequest, RunMetadata
from .io import intermediate_paths, save_png, write_json
from .matting import alpha_coverage, extract_alpha


@dataclass(frozen=True)
class StageTimings:
    acquire_s: float
    matte_s: float
    save_s: float
    total_s: float


@dataclass(frozen=True)
class RunResult:
    timings: StageTimings
    metadata: RunMetadata


@dataclass(frozen=True)
class PairFiles:
    name: str
    white_path: str
    black_path: str


def process(
    request: AcquisitionRequest,
    output_path: str,
    *,
    save_intermediates: bool = False,
    metadata_path: Optional[str] = None,
    service: Optional[ImageService] = None,
) -> RunResult:
    """
    Linear pipeline:
      1) Acquire white/black pair (0-2 service calls)
      2) Difference matting
      3) Save RGBA PNG
      4) Optionally save generated intermediates + metadata JSON

    Nothing is written unless matting succeeded.
    """
    t0 = time.perf_counter()

    pair = acquire(request, service=service)
    t_acq = time.perf_counter()

    result = extract_alpha(pair.white, pair.black)
    t_matte = time.perf_counter()

    save_rgba_png(to_rgba_image(result.rgba), output_path)

    white_out: Optional[str] = request.white_path
    black_out: Optional[str] = request.black_path
    if save_intermediates and pair.mode is not AcquisitionMode.PROVIDED_PAIR:
        white_out, black_out = intermediate_paths(output_path)
        save_png(pair.white, white_out)
        save_png(pair.black, black_out)
    t_save = time.perf_counter()

    timings = StageTimings(
        acquire_s=t_acq - t0,
        matte_s=t_matte - t_acq,
        save_s=t_save - t_matte,
        total_s=t_save - t0,
    )

    width, height = result.size
    opaque, transparent = alpha_coverage(result.rgba)
    meta = RunMetadata(
        mode=pair.mode.value,
        model=request.model,
        output_path=str(Path(output_path).resolve()),
        white_path=white_out,
        black_path=black_out,
        width=width,
        height=height,
        black_resized=result.black_resized,
        opaque_fraction=opaque,
        transparent_fraction=transparent,
        timings_s={
            "acquire": timings.acquire_s,
            "matte": timings.matte_s,
            "save": timings.save_s,
            "total": timings.total_s,
        },
    )
    if metadata_path:
        payload = meta.model_dump() if hasattr(meta, "model_dump") else meta.dict()
        write_json(metadata_path, payload)

    return RunResult(timings=timings, metadata=meta)


def find_background_pairs(pairs_dir: str) -> List[PairFiles]:
    """
    Match "<name>-white.<ext>" with "<name>-black.<ext>" (same naming the
    saved intermediates use). Unpaired files are ignored.
    """
    root = Path(pairs_dir)
    whites = {}
    blacks = {}
    for p in sorted(root.iterdir()):
        if not p.is_file() or p.suffix.lower() not in IMAGE_EXTS:
            continue
        if p.stem.endswith(WHITE_SUFFIX):
            whites[p.stem[: -len(WHITE_SUFFIX)]] = p
        elif p.stem.endswith(BLACK_SUFFIX):
            blacks[p.stem[: -len(BLACK_SUFFIX)]] = p

    return [
        PairFiles(name=name, white_path=str(whites[name]), black_path=str(blacks[name]))
        for name in sorted(whites)
        if name in blacks
    ]
