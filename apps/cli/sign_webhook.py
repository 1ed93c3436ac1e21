import argparse
import logging
import os
import sys
from typing import List, Optional

import httpx

from core.log import setup_logging
from core.security import SIGNATURE_HEADER, build_signature_header

logger = logging.getLogger(__name__)


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Sign a Wave webhook body and optionally send it."
    )
    parser.add_argument("body_file", help="file containing the raw JSON body")
    parser.add_argument(
        "--secret",
        default=os.getenv("WAVE_WEBHOOK_SECRET", ""),
        help="webhook secret (default: $WAVE_WEBHOOK_SECRET)",
    )
    parser.add_argument("--timestamp", type=int, default=None)
    parser.add_argument("--encoding", choices=("hex", "base64"), default="hex")
    parser.add_argument("--post", metavar="URL", help="POST the signed body to URL")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(sys.argv[1:] if argv is None else argv)
    if not args.secret:
        logger.error(" ❌ No secret given (use --secret or WAVE_WEBHOOK_SECRET).")
        return 2

    with open(args.body_file, "rb") as fh:
        body = fh.read()

    header = build_signature_header(
        body, args.secret.encode(), timestamp=args.timestamp, encoding=args.encoding
    )
    print(f"{SIGNATURE_HEADER}: {header}")

    if not args.post:
        return 0

    try:
        response = httpx.post(
            args.post,
            content=body,
            headers={SIGNATURE_HEADER: header, "Content-Type": "application/json"},
            timeout=10.0,
        )
    except httpx.HTTPError as e:
        logger.error(f" ❌ Cannot reach {args.post}: {e}")
        return 1

    logger.info(f" 📨 {args.post} responded {response.status_code}: {response.text}")
    return 0 if response.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
