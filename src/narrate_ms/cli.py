"""
Command-Line Interface for narrate-ms.

Runs one narration without the HTTP server, or shows where a narration
would be stored without touching the network.

Usage Examples:
    # Narrate and print the result
    narrate-ms --title "Card A" --campaign "Camp1" --text "Hello world"

    # Text from a file
    narrate-ms --title "Card A" --campaign "Camp1" --file card.txt

    # Dry run: canonical text, identifier, object path, filename
    narrate-ms --title "Card A" --campaign "Camp1" --text "Hello" --voice abc123 --dry-run --json

Exit Codes:
    0  ready (cached or generated)
    1  error (invalid input, configuration, upstream failure)
    2  processing (synthesis outlived its deadline; run again later)

Environment Variables:
    Same as the service: ELEVEN_API_KEY, ELEVEN_VOICE_ID, SUPABASE_URL,
    SUPABASE_SERVICE_ROLE_KEY, BUCKET, BUCKET_VISIBILITY, TTS_TIMEOUT_MS,
    SIGNED_URL_TTL.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from narrate_ms.core.config import ConfigValidationError, NarrateServiceConfig, load_settings
from narrate_ms.core.errors import NarrateError
from narrate_ms.core.logging import configure_logging, get_logger, info, set_request_id
from narrate_ms.narration.identity import content_id, locate
from narrate_ms.services.narrate_service import NarrateService, NarrationRequest
from narrate_ms.services.validators import ValidationError, validate_required, validate_voice_id
from narrate_ms.utils.text import canonicalize_text

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PROCESSING = 2


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="narrate-ms CLI (cached text narration)")

    parser.add_argument("--title", required=True, help="Card title")
    parser.add_argument("--campaign", required=True, help="Campaign name")
    parser.add_argument("--text", help="Text to narrate")
    parser.add_argument("--file", help="Read the text from this file (UTF-8)")
    parser.add_argument("--voice", help="Voice override")
    parser.add_argument("--settings", help="Settings YAML (default: config/settings.yaml)")

    parser.add_argument("--dry-run", action="store_true",
                        help="Show identifier and storage path without network calls")
    parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser.parse_args(argv)


def _load_text(args: argparse.Namespace) -> str:
    if args.file:
        if args.text:
            raise SystemExit("Use --file or --text, not both.")
        return Path(args.file).read_text(encoding="utf-8")
    if args.text is None:
        raise SystemExit("Provide --text or --file.")
    return args.text


def _dry_run(args: argparse.Namespace, text: str, config: NarrateServiceConfig) -> Dict[str, Any]:
    """Everything the service would compute before its first network call."""
    title = validate_required(args.title, "title")
    campaign = validate_required(args.campaign, "campaign")
    validate_required(text, "text")
    voice = validate_voice_id(args.voice) or config.synthesis.voice_id
    if not voice:
        raise ValidationError("no voice: pass --voice or set ELEVEN_VOICE_ID", "VOICE_REQUIRED")

    canonical = canonicalize_text(text)
    narration_id = content_id(voice, canonical, config.narration.id_length)
    location = locate(narration_id, campaign, title, config.narration.folder)
    return {
        "ok": True,
        "dry_run": True,
        "id": narration_id,
        "voice": voice,
        "object_path": location.object_path,
        "filename": location.filename,
        "canonical_chars": len(canonical),
    }


async def _narrate(args: argparse.Namespace, text: str, config: NarrateServiceConfig, rid: str) -> tuple[int, Dict[str, Any]]:
    service = NarrateService(config)
    try:
        result = await service.narrate(
            NarrationRequest(title=args.title, campaign=args.campaign, text=text, voice_id=args.voice),
            request_id=rid,
        )
    except NarrateError as e:
        return EXIT_ERROR, {**e.to_dict(), "status_code": e.status_code}
    finally:
        await service.aclose()

    return (EXIT_OK if result.ready else EXIT_PROCESSING), result.to_dict()


def _emit(payload: Dict[str, Any], as_json: bool) -> None:
    if as_json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        for key, value in payload.items():
            print(f"{key}: {value}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (see module docstring).
    """
    args = _parse_args(argv)

    configure_logging()
    log = get_logger("narrate-ms.cli")
    rid = str(uuid4())[:12]
    set_request_id(rid)

    text = _load_text(args)
    try:
        config = load_settings(args.settings).get_service_config()
    except ConfigValidationError as e:
        _emit({"ok": False, "error": "Invalid configuration", "detail": str(e)}, args.json)
        return EXIT_ERROR

    if args.dry_run:
        try:
            payload = _dry_run(args, text, config)
        except ValidationError as e:
            _emit({"ok": False, "error": e.message, "code": e.code}, args.json)
            return EXIT_ERROR
        info(log, "dry_run", id=payload["id"], path=payload["object_path"])
        _emit(payload, args.json)
        return EXIT_OK

    code, payload = asyncio.run(_narrate(args, text, config, rid))
    _emit(payload, args.json)
    return code


if __name__ == "__main__":
    raise SystemExit(main())
