"""cf-ai-codereview: get an AI overview of a diff from the command line."""

import argparse
import os
import sys
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from config import DEFAULT_ENDPOINT_URL, DEFAULT_VIEWER_URL
from reviewer.client import overview_url, review_code
from reviewer.errors import ReviewError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cf-ai-codereview",
        description="Review your code diffs using a hosted LLM",
    )
    parser.add_argument("-f", "--file", required=True,
                        help="Path to diff file or code to review")
    parser.add_argument("-p", "--prompt",
                        help="Optional LLM prompt to customize review")
    parser.add_argument("-s", "--source",
                        help="Optional source directory for additional context")
    parser.add_argument("--endpoint",
                        default=os.getenv("CODEREVIEW_ENDPOINT_URL", DEFAULT_ENDPOINT_URL),
                        help="Overview generation endpoint URL")
    parser.add_argument("--viewer-url",
                        default=os.getenv("CODEREVIEW_VIEWER_URL", DEFAULT_VIEWER_URL),
                        help="Web front end URL used for the shareable link")
    return parser


def main(argv: Optional[List[str]] = None, http_client: Optional[httpx.Client] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                diff = f.read()
        except OSError as e:
            raise ReviewError(f"Cannot read {args.file}: {e.strerror or e}")

        review = review_code(
            diff,
            prompt=args.prompt,
            source=args.source,
            endpoint=args.endpoint,
            http_client=http_client,
        )
    except ReviewError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n=== AI Code Review ===\n")
    print(review.overview)
    if review.overview_id:
        print("\n======= SEE MORE INFORMATION ABOUT YOUR CODE OVERVIEW ON THE LINK BELOW =======")
        print(overview_url(args.viewer_url, review.overview_id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
