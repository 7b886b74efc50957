from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

from diffmatte.acquisition import MODE_CALLS, AcquisitionMode, resolve_mode
from diffmatte.config import DEFAULT_IMAGE_MODEL, DEFAULT_OUTPUT
from diffmatte.contracts import AcquisitionRequest
from diffmatte.errors import MattingError
from diffmatte.pipeline import find_background_pairs, process

EXAMPLES = """
Examples:
  python run.py "a futuristic helmet with shadow"
  python run.py -i photo.jpg "the vase" -o vase.png
  python run.py "a glass vase with flowers" -o vase.png --save-intermediates
  python run.py --white helmet-white.png --black helmet-black.png -o helmet.png
  python run.py --pairs-dir renders/ -o out/

Environment:
  GEMINI_API_KEY          Gemini API key (required for generation)
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate transparent PNGs using Gemini + difference matting.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("prompt", nargs="?", default=None, help="Subject to generate, or object to extract with -i.")
    parser.add_argument("-i", "--input", default=None, type=str, help="Input image to extract an object from.")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, type=str, help="Output PNG (directory with --pairs-dir).")
    parser.add_argument("-m", "--model", default=DEFAULT_IMAGE_MODEL, type=str, help="Gemini image model.")
    parser.add_argument("--white", default=None, type=str, help="Pre-generated white-background image (skip generation).")
    parser.add_argument("--black", default=None, type=str, help="Pre-generated black-background image (skip edit).")
    parser.add_argument("--save-intermediates", action="store_true", help="Save the white and black intermediate images.")
    parser.add_argument("--metadata-json", default=None, type=str, help="Write run metadata JSON to this path (a directory with --pairs-dir).")
    parser.add_argument("--pairs-dir", default=None, type=str, help="Batch: directory of <name>-white/<name>-black pairs.")
    return parser


def _run_single(args: argparse.Namespace) -> int:
    request = AcquisitionRequest(
        prompt=args.prompt,
        input_path=args.input,
        white_path=args.white,
        black_path=args.black,
        model=args.model,
    )
    mode = resolve_mode(request)
    if mode is not AcquisitionMode.UNRESOLVABLE:
        calls = MODE_CALLS[mode]
        print(f"Mode: {mode.value} ({' -> '.join(calls) if calls else 'no service calls'})")

    result = process(
        request,
        args.output,
        save_intermediates=args.save_intermediates,
        metadata_path=args.metadata_json,
    )
    t = result.timings
    meta = result.metadata
    print(
        f"acquire={t.acquire_s:.3f}s matte={t.matte_s:.3f}s save={t.save_s:.3f}s total={t.total_s:.3f}s"
    )
    if meta.black_resized:
        print(f"Resized black image to {meta.width}x{meta.height}")
    if args.save_intermediates and meta.mode != "provided_pair":
        print(f"Saved intermediates: {meta.white_path}, {meta.black_path}")
    print(f"Done! Transparent PNG saved to: {args.output}")
    return 0


def _run_pairs(args: argparse.Namespace) -> int:
    pairs_dir = Path(args.pairs_dir)
    output_dir = Path(args.output)
    if not pairs_dir.exists():
        raise FileNotFoundError(f"Pairs dir not found: {pairs_dir}")

    pairs = find_background_pairs(str(pairs_dir))
    if not pairs:
        print(f"No <name>-white/<name>-black pairs found under {pairs_dir}")
        return 0

    total0 = time.perf_counter()
    for pair in tqdm(pairs, desc="Matting", unit="pair"):
        request = AcquisitionRequest(white_path=pair.white_path, black_path=pair.black_path, model=args.model)
        metadata_path = str(Path(args.metadata_json) / f"{pair.name}.json") if args.metadata_json else None
        process(request, str(output_dir / f"{pair.name}.png"), metadata_path=metadata_path)

    total1 = time.perf_counter()
    print(f"Done. {len(pairs)} pairs in {total1-total0:.2f}s -> {output_dir.resolve()}")
    return 0


def main() -> int:
    load_dotenv()
    args = _build_parser().parse_args()

    try:
        if args.pairs_dir:
            return _run_pairs(args)
        return _run_single(args)
    except (MattingError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
