from __future__ import annotations

import argparse
import http.client
import json
import logging
import sys
from typing import List

from hiveimg.client import DEFAULT_IMAGE_HOST, upload_image
from hiveimg.core.config import (
    load_config,
    mask_key,
    resolve_credentials,
    save_config,
)
from hiveimg.core.exceptions import HiveImageError
from hiveimg.signing import PrivateKey

log = logging.getLogger("hiveimg.cli")


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, default=str))


def _error(msg: str) -> int:
    print(f"error: {msg}", file=sys.stderr)
    return 1


def cmd_upload(args: argparse.Namespace) -> int:
    """Sign and upload an image, print the JSON result.

    Security notes:
    - The posting key is never echoed, even on failure.

    """

    try:
        config = load_config(args.config)
        account, posting_key = resolve_credentials(config, args.account)
    except HiveImageError as e:
        return _error(str(e))

    print("Uploading image...", file=sys.stderr)
    try:
        result = upload_image(
            args.file,
            account,
            posting_key,
            host=args.host,
            max_bytes=args.max_upload_bytes,
        )
    except (HiveImageError, OSError, ValueError, http.client.HTTPException) as e:
        # OSError covers URLError and socket failures; ValueError a malformed --host.
        log.debug("upload failed", exc_info=True)
        return _error(str(e))

    print("Image uploaded successfully", file=sys.stderr)
    _print_json(result.model_dump())
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show or update the stored account and posting key."""

    try:
        config = load_config(args.config, use_env=False)
    except HiveImageError as e:
        return _error(str(e))

    updates = {}
    if args.account:
        updates["account"] = args.account
    if args.posting_key:
        try:
            PrivateKey.from_wif(args.posting_key)
        except HiveImageError as e:
            return _error(str(e))
        updates["posting_key"] = args.posting_key

    if updates:
        config = config.model_copy(update=updates)
        try:
            path = save_config(config, args.config)
        except OSError as e:
            return _error(f"cannot write config file: {e}")
        print(f"Saved config to {path}", file=sys.stderr)

    if args.show or not updates:
        _print_json({"account": config.account, "postingKey": mask_key(config.posting_key)})
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hiveimg", description="Sign and upload images to a Hive ImageHoster"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Config file path (default: $HIVEIMG_CONFIG or ~/.hiveimg/config.json)",
    )
    p.add_argument("--log-level", default="warning", help="Logging level (default: warning)")
    sub = p.add_subparsers(dest="cmd", required=True)

    up = sub.add_parser("upload", help="Upload an image to Hive ImageHoster")
    up.add_argument("-f", "--file", required=True, help="Path to the image file")
    up.add_argument("--host", default=DEFAULT_IMAGE_HOST, help="ImageHoster URL")
    up.add_argument(
        "--account", default=None, help="Account name (defaults to configured account)"
    )
    up.add_argument(
        "--max-upload-bytes", type=int, default=None, help="Optional client-side upload cap"
    )
    up.set_defaults(func=cmd_upload)

    cf = sub.add_parser("config", help="Show or set the account and posting key")
    cf.add_argument("--account", default=None, help="Default account name")
    cf.add_argument("--posting-key", default=None, help="Posting key (WIF)")
    cf.add_argument("--show", action="store_true", help="Print the config (key masked)")
    cf.set_defaults(func=cmd_config)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
