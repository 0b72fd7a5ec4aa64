"""
Resolve a site's favicon (or OG image) and save it with its page metadata.

Usage:
    favicon-api <URL> <output.json> [--og] [--size N] [--format png] [--default URL]
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict

from favicon_api.config import AppConfig
from favicon_api.errors import FallbackExhausted
from favicon_api.services.discovery import resolve_favicon, resolve_og_image
from favicon_api.services.image_processor import process_image

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Find the best favicon or social preview image for a URL."
    )
    parser.add_argument("url", help="The domain or URL to inspect")
    parser.add_argument("output", help="Path to JSON output file")
    parser.add_argument("--og", action="store_true", help="Resolve the OG image instead of the favicon")
    parser.add_argument("--size", type=int, default=None, help="Resize the image to a square of N pixels")
    parser.add_argument(
        "--format",
        choices=["png", "jpg", "jpeg", "ico", "webp", "svg"],
        default=None,
        help="Re-encode the image to this format",
    )
    parser.add_argument("--default", default=None, help="Default image URL used when nothing is found")
    parser.add_argument("--skip-fallback", action="store_true", help="Fail instead of using fallback images")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    out_dir = os.path.dirname(os.path.abspath(args.output)) or "."
    os.makedirs(out_dir, exist_ok=True)
    config = AppConfig.from_env()

    try:
        if args.og:
            result = resolve_og_image(
                args.url, config, default_url=args.default, skip_fallback=args.skip_fallback
            )
            asset = result.og_image
        else:
            result = resolve_favicon(
                args.url,
                config,
                size=args.size,
                default_url=args.default,
                skip_fallback=args.skip_fallback,
                include_og=False,
            )
            asset = result.favicon
    except FallbackExhausted as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    processed = process_image(asset.data, args.size, args.format)
    stem = os.path.splitext(os.path.basename(args.output))[0]
    filename = f"{stem}.{processed.format}"
    with open(os.path.join(out_dir, filename), "wb") as f:
        f.write(processed.data)

    meta = asdict(result.metadata)
    meta.update(
        {
            "url": args.url,
            "image_file": filename,
            "source": asset.source.value,
            "source_url": asset.origin_url,
            "is_fallback": asset.is_fallback,
            "format": processed.format,
            "width": processed.width,
            "height": processed.height,
        }
    )
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(meta, f, ensure_ascii=False, indent=2)

    print(f"Metadata and image saved to {out_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
