"""
Command-line entry point.

Usage:
    locsync en.json -l es,fr
    locsync "locales/**/en.json" -l de -o "{dir}/{lang}.json" --stats
    locsync en.json -l es --check-keys
    locsync --list-providers

Exit codes:
    0  success
    1  fatal error (no input, provider unavailable, nothing could be written)
    2  invalid arguments
    3  --check-keys found missing keys
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, TextIO

from dotenv import load_dotenv

from locsync import __version__
from locsync.config import Settings, get_settings
from locsync.core.keys import compare_keys, sort_keys
from locsync.i18n.languages import get_language_name, normalize_language_code, parse_language_list
from locsync.providers.base import ProviderUnavailableError, TranslationProvider
from locsync.providers.factory import PROVIDER_TYPES, create_provider, list_available_providers
from locsync.services.documents import (
    DocumentError,
    add_metadata,
    build_metadata,
    collect_files,
    document_format,
    document_id,
    dump_document,
    load_document,
    resolve_output_path,
    write_document,
)
from locsync.services.sync import SourceDocument, SyncResult, TranslationSync, format_stats
from locsync.storage.cache import TranslationCache


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2
EXIT_MISSING_KEYS = 3


# =============================================================================
# Arguments
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locsync",
        description="Translate JSON/YAML localization files, sending only changed strings to the provider",
    )
    parser.add_argument("inputs", nargs="*", metavar="INPUT", help="Source files or glob patterns")
    parser.add_argument(
        "--lang", "-l",
        help="Target language code(s), comma-separated (e.g. es,fr,de)",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--output", "-o",
        metavar="PATTERN",
        help="Output path pattern with {dir}, {name}, {lang}, {ext} (default: {dir}/{name}.{lang}{ext})",
    )
    output.add_argument("--stdout", action="store_true", help="Print translations instead of writing files")

    parser.add_argument("--stats", action="store_true", help="Print translation statistics")
    parser.add_argument("--no-cache", action="store_true", help="Translate everything, do not read or write the cache")
    parser.add_argument("--cache-file", help="Cache file location (default: platform cache directory)")
    parser.add_argument("--provider", choices=PROVIDER_TYPES, help="Translation provider")
    parser.add_argument("--ollama-url", help="Ollama server URL")
    parser.add_argument("--ollama-model", help="Ollama model name")
    parser.add_argument(
        "--preserve-formats",
        action="store_true",
        help="Protect URLs, emails, placeholders, dates, ... from translation",
    )
    parser.add_argument(
        "--keep-all-leaves",
        action="store_true",
        help="Keep numbers, booleans and non-translatable strings in the output",
    )
    parser.add_argument("--dry-run", action="store_true", help="Show what would be translated, change nothing")
    parser.add_argument("--sort-keys", action="store_true", help="Sort output keys case-insensitively")
    parser.add_argument(
        "--check-keys",
        action="store_true",
        help="Compare existing output files with their sources and report missing keys",
    )
    parser.add_argument("--metadata", action="store_true", help="Add a _translator_metadata block to outputs")
    parser.add_argument("--detect-source", action="store_true", help="Detect the source language for metadata")
    parser.add_argument("--list-providers", action="store_true", help="List usable providers and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(args: argparse.Namespace, settings: Settings | None = None) -> Settings:
    """Apply CLI overrides on top of environment settings."""
    settings = settings or get_settings()
    overrides: dict[str, Any] = {}
    if args.provider:
        overrides["translation_provider"] = args.provider
    if args.ollama_url:
        overrides["ollama_url"] = args.ollama_url
    if args.ollama_model:
        overrides["ollama_model"] = args.ollama_model
    if args.cache_file:
        overrides["cache_file"] = args.cache_file
    if args.preserve_formats:
        overrides["preserve_formats"] = True
    return settings.model_copy(update=overrides) if overrides else settings


# =============================================================================
# Commands
# =============================================================================


async def list_providers(settings: Settings) -> int:
    print("🔌 Available translation providers:")
    available = await list_available_providers(settings)
    if not available:
        print("   (none) - set GEMINI_API_KEY / OPENAI_API_KEY / ANTHROPIC_API_KEY or start Ollama")
        return EXIT_FATAL
    for entry in available:
        print(f"   ✓ {entry}")
    return EXIT_OK


def load_sources(files: list[Path], out: TextIO) -> tuple[list[SourceDocument], dict[str, Path]]:
    """Parse input files; unreadable ones are reported and skipped."""
    documents: list[SourceDocument] = []
    paths: dict[str, Path] = {}
    for path in files:
        try:
            tree = load_document(path)
        except DocumentError as e:
            print(f"  ⚠️  {e}", file=out)
            continue
        identity = document_id(path)
        try:
            document = SourceDocument(identity, tree)
        except TypeError as e:
            print(f"  ⚠️  Cannot read {path}: {e}", file=out)
            continue
        documents.append(document)
        paths[identity] = path
    return documents, paths


def check_keys(
    documents: list[SourceDocument],
    paths: dict[str, Path],
    languages: list[str],
    pattern: str | None,
    out: TextIO,
) -> int:
    """Compare existing outputs with their sources."""
    missing_total = 0
    for document in documents:
        source = paths[document.document_id]
        for lang in languages:
            try:
                target = resolve_output_path(source, lang, pattern)
            except ValueError as e:
                print(f"❌ {e}", file=out)
                return EXIT_FATAL
            try:
                translated = load_document(target)
            except DocumentError as e:
                print(f"  ⚠️  {e}", file=out)
                missing_total += 1
                continue

            comparison = compare_keys(document.tree, translated)
            if comparison.is_valid:
                print(f"  ✓ {target}: all {len(comparison.source_keys)} keys present", file=out)
            else:
                missing_total += len(comparison.missing_keys)
                print(f"  ❌ {target}: {len(comparison.missing_keys)} missing key(s)", file=out)
                for key in sorted(comparison.missing_keys):
                    print(f"     - {key}", file=out)
            if comparison.extra_keys:
                print(f"     ({len(comparison.extra_keys)} extra key(s) not in source)", file=out)

    return EXIT_MISSING_KEYS if missing_total else EXIT_OK


def plan_outputs(
    documents: list[SourceDocument],
    paths: dict[str, Path],
    languages: list[str],
    pattern: str | None,
) -> dict[tuple[str, str], Path]:
    """Output path per (document, language); rejects collisions."""
    outputs: dict[tuple[str, str], Path] = {}
    claimed: dict[str, str] = {document_id(p): "a source file" for p in paths.values()}

    for document in documents:
        source = paths[document.document_id]
        for lang in languages:
            target = resolve_output_path(source, lang, pattern)
            identity = document_id(target)
            if identity in claimed:
                raise ValueError(
                    f"Output {target} for {source.name} ({lang}) would overwrite {claimed[identity]}. "
                    "Use {name} and {lang} in the output pattern."
                )
            claimed[identity] = f"the {lang} output of {source.name}"
            outputs[(document.document_id, lang)] = target
    return outputs


async def detect_source_language(provider: TranslationProvider | None, documents: list[SourceDocument]) -> str:
    if provider is None:
        return "en"
    samples: list[str] = []
    for document in documents:
        for text in document.flat.values():
            if text not in samples:
                samples.append(text)
            if len(samples) >= 20:
                break
    return await provider.detect_language(samples)


def emit_results(
    results: list[SyncResult],
    paths: dict[str, Path],
    outputs: dict[tuple[str, str], Path],
    args: argparse.Namespace,
    provider: TranslationProvider | None,
    source_language: str,
    out: TextIO,
) -> tuple[int, int]:
    """Write (or print) every translated document. Returns (written, failed)."""
    written = failed = 0

    for result in results:
        print(f"\n🌍 {get_language_name(result.language)} ({result.language})", file=out)
        for message in result.errors:
            print(f"   ⚠️  {message}", file=out)

        for identity, document in result.documents.items():
            source = paths[identity]
            if not document.ok:
                failed += 1
                continue

            tree = document.tree
            if args.sort_keys:
                tree = sort_keys(tree)
            if args.metadata:
                tree = add_metadata(tree, build_metadata(
                    provider=provider.name if provider else "none",
                    source_language=source_language,
                    target_language=result.language,
                    total_strings=document.total_strings,
                    source_file=source,
                ))

            if args.dry_run:
                target = outputs.get((identity, result.language))
                destination = "stdout" if target is None else str(target)
                print(f"   • {source.name}: {document.total_strings} strings -> {destination}", file=out)
                continue

            if args.stdout:
                sys.stdout.write(dump_document(tree, document_format(source)))
                written += 1
                continue

            target = outputs[(identity, result.language)]
            try:
                write_document(target, tree, document_format(source))
            except DocumentError as e:
                print(f"   ❌ {e}", file=out)
                failed += 1
                continue
            written += 1
            print(
                f"   ✓ {target} ({document.translated_strings}/{document.total_strings} translated)",
                file=out,
            )

        if args.stats:
            print(file=out)
            print(
                format_stats(
                    result.stats,
                    cache_enabled=not args.no_cache,
                    provider_name=provider.name if provider else "",
                ),
                file=out,
            )

    return written, failed


async def run(args: argparse.Namespace, settings: Settings) -> int:
    out = sys.stderr if args.stdout else sys.stdout
    languages = [normalize_language_code(code) for code in parse_language_list(args.lang or "")]

    files = collect_files(args.inputs)
    if not files:
        print("❌ No input files found", file=out)
        return EXIT_FATAL

    documents, paths = load_sources(files, out)
    if not documents:
        print("❌ No input file could be read", file=out)
        return EXIT_FATAL

    if args.check_keys:
        print("🔑 Checking keys...", file=out)
        return check_keys(documents, paths, languages, args.output, out)

    outputs: dict[tuple[str, str], Path] = {}
    if not args.stdout:
        try:
            outputs = plan_outputs(documents, paths, languages, args.output)
        except ValueError as e:
            print(f"❌ {e}", file=out)
            return EXIT_FATAL

    provider: TranslationProvider | None = None
    if not args.dry_run:
        try:
            provider = await create_provider(settings=settings)
        except ProviderUnavailableError as e:
            print(f"❌ {e}", file=out)
            return EXIT_FATAL

    cache = None if args.no_cache else TranslationCache.load(settings.resolved_cache_file)

    print("=" * 60, file=out)
    print(f"🔄 TRANSLATION SYNC{' (dry run)' if args.dry_run else ''}", file=out)
    print("=" * 60, file=out)
    print(f"\n📚 {len(documents)} file(s) -> {', '.join(languages)}", file=out)
    if provider is not None:
        print(f"🔌 Provider: {provider.name}", file=out)
    if cache is not None:
        print(f"💾 Cache: {cache.path} ({len(cache)} entries)", file=out)

    source_language = "en"
    if args.detect_source:
        source_language = await detect_source_language(provider, documents)
        print(f"🔎 Source language: {get_language_name(source_language)}", file=out)

    sync = TranslationSync(
        provider,
        cache=cache,
        max_batch_size=settings.max_batch_size,
        max_concurrent_batches=settings.max_concurrent_batches,
        keep_all_leaves=args.keep_all_leaves,
    )
    results = await sync.run_languages(documents, languages, dry_run=args.dry_run)

    written, failed = emit_results(results, paths, outputs, args, provider, source_language, out)

    if cache is not None and not args.dry_run:
        if results and results[0].cache_saved:
            print(f"\n💾 Cache saved ({len(cache)} entries)", file=out)
        elif cache.dirty:
            print("\n⚠️  Cache could not be saved; translations above are still valid", file=out)

    print("\n" + "=" * 60, file=out)
    if failed and not written and not args.dry_run:
        print("❌ No output could be produced", file=out)
        print("=" * 60, file=out)
        return EXIT_FATAL
    print("✅ DONE", file=out)
    print("=" * 60, file=out)
    return EXIT_OK


# =============================================================================
# CLI Entry Point
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Run locsync from the command line."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = settings_from_args(args)

    if args.list_providers:
        return asyncio.run(list_providers(settings))

    if not args.inputs:
        parser.error("at least one INPUT is required")
    if not parse_language_list(args.lang or ""):
        parser.error("--lang is required (e.g. -l es or -l es,fr)")

    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
