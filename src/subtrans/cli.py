"""
Command-line interface for the subtitle translator.
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from tqdm import tqdm

from .config import Settings
from .errors import ConfigurationError, SubtransError
from .orchestrator import TranslationRun
from .srt_utils import output_path_for, read_srt, write_srt
from .translation import OpenAICompatibleTranslator, context_from_filename, validate_api_key

logger = logging.getLogger("subtrans")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_AUTH = 2
EXIT_QUOTA = 3

_EXIT_CODES = {"auth": EXIT_AUTH, "quota": EXIT_QUOTA}


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Translate SRT subtitles with a remote LLM")
    ap.add_argument("--api-key", default=None, help="API key (default: SUBTRANS_API_KEY / GEMINI_API_KEY)")
    ap.add_argument("--model", default=None, help="Model name (default: SUBTRANS_MODEL)")
    ap.add_argument("--base-url", default=None, help="OpenAI-compatible endpoint (default: SUBTRANS_BASE_URL)")
    ap.add_argument("--language", default=None, help="Target language (only pt-BR is supported)")
    ap.add_argument("--env-file", default=None, help="Load settings from this .env file")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    sub = ap.add_subparsers(dest="command", required=True)

    tr = sub.add_parser("translate", help="Translate one or more SRT files")
    tr.add_argument("inputs", nargs="+", help="SRT files to translate")
    tr.add_argument("--output", default=None, help="Output path (single input only)")
    tr.add_argument("--max-tokens", type=int, default=None, help="Token ceiling per request")
    tr.add_argument("--max-attempts", type=int, default=None, help="Attempts per request")
    tr.add_argument("--no-context", action="store_true", help="Do not pass the filename as context")
    tr.add_argument("--jsonl", action="store_true", help="Print progress events as JSON lines")

    sub.add_parser("validate-key", help="Check the API key with one minimal request")

    return ap.parse_args(argv)


def load_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    settings = Settings.from_env(args.env_file)
    overrides = {
        "api_key": args.api_key,
        "model": args.model,
        "base_url": args.base_url,
        "language": args.language,
        "max_tokens": getattr(args, "max_tokens", None),
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    max_attempts = getattr(args, "max_attempts", None)
    if max_attempts is not None:
        settings.retry = replace(settings.retry, max_attempts=max_attempts)
    settings.validate()
    if not settings.api_key:
        raise ConfigurationError("No API key: set SUBTRANS_API_KEY in .env or pass --api-key")
    return settings


async def translate_file(path: Path, output: Path, settings: Settings, jsonl: bool, use_context: bool) -> int:
    """Translate one SRT file and return an exit code."""
    segments = read_srt(path)
    context = context_from_filename(path) if use_context else None
    translator = OpenAICompatibleTranslator(model=settings.model, base_url=settings.base_url, context=context)
    run = TranslationRun(segments, translator, settings.api_key, settings)

    logger.info(f"Translating {path} ({len(segments)} segments) -> {output}")
    bar = None if jsonl else tqdm(total=len(segments), desc=path.name, unit="seg")
    code = EXIT_FAILURE
    try:
        async for event in run.events():
            if jsonl:
                payload = event.to_dict()
                payload.pop("translations", None)
                payload.pop("document", None)
                print(json.dumps(payload, ensure_ascii=False), flush=True)
            elif event.kind == "progress":
                bar.update(event.translated_count - bar.n)
            elif event.kind in ("quota_wait", "quota_resume"):
                bar.set_postfix_str(event.message)

            if event.kind == "result":
                write_srt(output, event.document)
                logger.info(f"Saved translated SRT -> {output}")
                code = EXIT_OK
            elif event.kind == "error":
                logger.error(f"Translation of {path} failed: {event.message}")
                code = _EXIT_CODES.get(event.error_type, EXIT_FAILURE)
    finally:
        if bar is not None:
            bar.close()
    return code


async def main_async(argv: list[str] | None = None) -> int:
    """Main async CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args)
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_FAILURE

    if args.command == "validate-key":
        translator = OpenAICompatibleTranslator(model=settings.model, base_url=settings.base_url)
        result = await validate_api_key(translator, settings.api_key, settings.language)
        print(json.dumps({"valid": result.valid, "error_type": result.error_type, "message": result.message}))
        if result.valid:
            return EXIT_OK
        return _EXIT_CODES.get(result.error_type, EXIT_FAILURE)

    if args.output and len(args.inputs) > 1:
        logger.error("--output can only be used with a single input file")
        return EXIT_FAILURE

    worst = EXIT_OK
    for raw_path in args.inputs:
        path = Path(raw_path)
        output = Path(args.output) if args.output else output_path_for(path, settings.language)
        try:
            code = await translate_file(path, output, settings, args.jsonl, not args.no_context)
        except (OSError, SubtransError) as e:
            logger.error(f"Could not translate {path}: {e}")
            code = EXIT_FAILURE
        if code == EXIT_AUTH:
            # every remaining file would fail the same way
            return code
        worst = max(worst, code)
    return worst


def main() -> None:
    """Main CLI entry point."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
