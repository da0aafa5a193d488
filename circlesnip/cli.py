#!/usr/bin/env python3
"""Thin CLI around the capture pipeline and the license client.

Keep this a small wrapper: parse args, call library functions, return
meaningful exit codes.
"""

import argparse
import logging
import sys
from pathlib import Path

from .capture import CaptureCoordinator, CaptureSettings
from .config import ClientConfig
from .errors import CircleSnipError
from .geometry import Circle, ScalePolicy, Viewport, constrain_circle, snap_diameter
from .license_client import PRICE_TYPES, ClientStateFile, LicenseClient
from .processor import CircleCropProcessor


def _verify(config: ClientConfig, store: ClientStateFile):
    state = store.load()
    client = LicenseClient(config.license_server, timeout=config.http_timeout)
    verdict = client.verify(state.client_id, state.license_cache)
    state.license_cache = verdict.cache
    store.save(state)
    return state, verdict


def cmd_snip(args, config: ClientConfig) -> int:
    store = ClientStateFile(config.cache_path)
    state, verdict = _verify(config, store)

    try:
        image = Path(args.image).read_bytes()
    except OSError as e:
        print(f"Capture failed: {e}", file=sys.stderr)
        return 2

    policy = ScalePolicy.STRICT if args.strict_scale else ScalePolicy.AVERAGE
    coordinator = CaptureCoordinator(
        processor=CircleCropProcessor(policy=policy),
        settings=CaptureSettings(
            auto_copy=args.copy,
            auto_download=not args.no_download,
            download_dir=args.out or config.download_dir,
        ),
        entitled=verdict.is_pro,
        capture_count=state.capture_count,
    )

    try:
        viewport = Viewport(args.viewport_width, args.viewport_height)
        circle = Circle(args.x, args.y, args.diameter)
        if args.fit:
            # same adjustment the overlay applies when a resize gesture ends
            circle = constrain_circle(Circle(circle.x, circle.y, snap_diameter(circle.diameter)), viewport)
        session = coordinator.start(image, viewport)
        outcome = session.capture(circle)
    except (CircleSnipError, ValueError) as e:
        print(f"Capture failed: {e}", file=sys.stderr)
        return 2

    state.capture_count = coordinator.capture_count
    store.save(state)

    print(outcome.status_message)
    if outcome.saved_path:
        print(outcome.saved_path)
    return 0


def cmd_verify(args, config: ClientConfig) -> int:
    store = ClientStateFile(config.cache_path)
    state, verdict = _verify(config, store)
    print(f"client_id={state.client_id}")
    print(f"pro={verdict.is_pro} type={verdict.license_type} source={verdict.source}")
    if verdict.reason:
        print(f"reason={verdict.reason}")
    return 0 if verdict.is_pro else 1


def cmd_checkout(args, config: ClientConfig) -> int:
    state = ClientStateFile(config.cache_path).load()
    client = LicenseClient(config.license_server, timeout=config.http_timeout)
    url = client.create_checkout(state.client_id, args.price_type, args.success_url, args.cancel_url)
    if not url:
        print("Checkout failed. Please try again.", file=sys.stderr)
        return 2
    print(url)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Circle Snip - circular screenshot crops")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p = sub.add_parser("snip", help="crop a circle out of a screenshot")
    p.add_argument("image", help="screenshot file (device pixels)")
    p.add_argument("--x", type=float, required=True, help="circle center x (CSS px)")
    p.add_argument("--y", type=float, required=True, help="circle center y (CSS px)")
    p.add_argument("--diameter", type=float, required=True, help="circle diameter (CSS px)")
    p.add_argument("--viewport-width", type=float, required=True, help="viewport width (CSS px)")
    p.add_argument("--viewport-height", type=float, required=True, help="viewport height (CSS px)")
    p.add_argument("--out", type=Path, help="download directory")
    p.add_argument("--copy", action="store_true", help="also copy to clipboard")
    p.add_argument("--no-download", action="store_true", help="skip saving to disk")
    p.add_argument("--strict-scale", action="store_true", help="fail when x/y scales disagree")
    p.add_argument("--fit", action="store_true", help="snap the diameter and keep the circle inside the viewport")

    sub.add_parser("verify", help="check license status")

    p = sub.add_parser("checkout", help="print a checkout URL")
    p.add_argument("price_type", choices=PRICE_TYPES)
    p.add_argument("--success-url")
    p.add_argument("--cancel-url")

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    config = ClientConfig.from_env()

    if args.cmd == "snip":
        return cmd_snip(args, config)
    if args.cmd == "verify":
        return cmd_verify(args, config)
    if args.cmd == "checkout":
        return cmd_checkout(args, config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
