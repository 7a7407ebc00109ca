"""
Command Line Interface for photo_ocr
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import cv2

from .errors import OCRError
from .models import registry
from .pipeline import OCRPipeline
from .utils import draw_ocr_boxes


def collect_images(image: str = None, image_dir: str = None):
    """Return the image paths named on the command line."""
    if image:
        return [Path(image)]
    names = []
    directory = Path(image_dir)
    for pattern in ("*.jpg", "*.png"):
        names.extend(sorted(directory.glob(pattern)))
    return names


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Detect and recognize text in photographs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Recognize text in one image
  photo-ocr --config conf.yaml --image receipt.jpg

  # Every *.jpg / *.png in a directory, as JSON lines
  photo-ocr --config conf.yaml --image-dir photos/ --json

  # Save annotated copies of the inputs
  photo-ocr --config conf.yaml --image-dir photos/ --draw-dir out/
        """
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        default='config/conf.yaml',
        help='YAML config for the OCR engine (default: config/conf.yaml)'
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--image',
        type=str,
        help='Image to predict'
    )
    source.add_argument(
        '--image-dir',
        type=str,
        help='Directory of *.jpg / *.png images to predict'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print one JSON object per result'
    )
    parser.add_argument(
        '--draw-dir',
        type=str,
        default=None,
        help='Write images annotated with the results to this directory'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output (stage timings)'
    )
    parser.add_argument(
        '--model-status',
        action='store_true',
        help='Show which default models are cached and exit'
    )

    args = parser.parse_args(argv)

    if args.model_status:
        print(registry.status())
        return 0
    if not (args.image or args.image_dir):
        parser.error("one of the arguments --image --image-dir is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.image_dir and not Path(args.image_dir).is_dir():
        print(f"Error: Image directory '{args.image_dir}' not found", file=sys.stderr)
        return 1

    names = collect_images(args.image, args.image_dir)
    if not names:
        print(f"No *.jpg or *.png images found in '{args.image_dir}'", file=sys.stderr)
        return 1

    draw_dir = None
    if args.draw_dir:
        draw_dir = Path(args.draw_dir)
        draw_dir.mkdir(parents=True, exist_ok=True)

    def report(stage, elapsed):
        if args.verbose:
            print(f"  {stage}: {elapsed * 1000:.1f}ms")

    try:
        pipeline = OCRPipeline.from_config(args.config, on_stage=report)

        for name in names:
            img = pipeline.read_image(name)
            results = pipeline.predict(img)

            if not args.json:
                print(f"======== image: {name} ========")
            for res in results:
                if args.json:
                    print(json.dumps({"image": str(name), **res.to_dict()}, ensure_ascii=False))
                else:
                    print(res)

            if draw_dir is not None:
                out_path = draw_dir / name.name
                cv2.imwrite(str(out_path), draw_ocr_boxes(img, results))

        return 0

    except KeyboardInterrupt:
        print("\n\nInterrupted by user", file=sys.stderr)
        return 130
    except OCRError as e:
        print(f"\nError: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
