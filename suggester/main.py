"""Entry point: translate texts or a JSON key/text file from the command line."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="suggester",
        description="Suggest translations with a pluggable engine.",
    )
    parser.add_argument("texts", nargs="*", help="Texts to translate")
    parser.add_argument("--file", type=Path, help="JSON object of key -> text to translate")
    parser.add_argument("--provider", help="Provider id (echo, google, openai)")
    parser.add_argument("--source", help="Source language code (default: auto-detect)")
    parser.add_argument("--target", help="Target language code")
    placeholder_group = parser.add_mutually_exclusive_group()
    placeholder_group.add_argument(
        "--no-preserve", action="store_true", help="Do not protect :name style parameters"
    )
    placeholder_group.add_argument("--pattern", help="Custom placeholder regex")
    parser.add_argument("--concurrency", type=int, help="Parallel requests for --file batches")
    parser.add_argument(
        "--detect", action="store_true", help="Print the detected source language of each text"
    )
    return parser


async def run(args: argparse.Namespace) -> dict:
    """Configure a provider from parsed arguments and run the request."""
    from suggester import config
    from suggester.providers import load_provider

    kwargs = {}
    if args.concurrency is not None:
        kwargs["max_concurrency"] = args.concurrency
    provider = load_provider(args.provider or config.TRANSLATION_PROVIDER, **kwargs)

    try:
        provider.set_source(args.source).set_target(args.target or config.DEFAULT_TARGET_LANG)
        if args.no_preserve:
            provider.preserve_parameters(False)
        elif args.pattern:
            provider.preserve_parameters(args.pattern)

        if args.file:
            texts = json.loads(args.file.read_text(encoding="utf-8"))
            if not isinstance(texts, dict):
                raise ValueError(f"{args.file} must contain a JSON object of key -> text")
        else:
            texts = {str(i): text for i, text in enumerate(args.texts)}

        if args.detect:
            if not hasattr(provider, "detect"):
                raise ValueError(f"Provider '{provider.id()}' cannot detect languages")
            return {key: await provider.detect(text) for key, text in texts.items()}
        return await provider.translate_many(texts)
    finally:
        await provider.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the suggester CLI."""
    from suggester import config

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    logger = logging.getLogger(__name__)

    args = build_parser().parse_args(argv)
    if not args.texts and not args.file:
        logger.error("Nothing to translate: pass texts or --file")
        return 1

    try:
        results = asyncio.run(run(args))
    except ValueError as exc:
        logger.error("%s", exc)
        return 1

    if args.file:
        output = results
    else:
        output = list(results.values())
        if len(output) == 1:
            output = output[0]
    json.dump(output, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
