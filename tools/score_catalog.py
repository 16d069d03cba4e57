#!/usr/bin/env python3
"""
Bulk re-scoring of a product catalog.

Reads products (JSON list or CSV with a header row), computes category price
anchors from the catalog itself, scores every product and writes a CSV
summary (or full JSON results).

Usage:
    python tools/score_catalog.py products.json                   # → products_scores.csv
    python tools/score_catalog.py products.csv --output out.csv
    python tools/score_catalog.py products.json --format json --dry-matter
    python tools/score_catalog.py products.json --lexicon my_lexicon.json --strict-lexicon

Exit codes:
    0  all products scored
    1  configuration error (lexicon missing or invalid)
    2  input/output error (catalog unreadable, output not writable)
    3  scoring rule produced an out-of-range subscore (bug; see log)
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from petscore.batch import CatalogFormatError, read_catalog, score_catalog, write_results
from petscore.config import load_feature_flags
from petscore.lexicon import LexiconError, get_active_lexicon, set_active_lexicon
from petscore.scoring.engine import ScoringInvariantError, algorithm_metadata
from petscore.utils.error_formatting import ErrorFormatter
from petscore.utils.logging_config import setup_logging

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INPUT_ERROR = 2
EXIT_SCORING_ERROR = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Score a pet-food product catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("input", type=str, help="Catalog file (.json or .csv)")
    parser.add_argument("--output", type=str, help="Output file (default: <input>_scores.<format>)")
    parser.add_argument("--format", choices=["csv", "json"], default="csv", help="Output format")
    parser.add_argument("--lexicon", type=str, help="Ingredient lexicon JSON (default: bundled)")
    parser.add_argument("--strict-lexicon", action="store_true",
                        help="Fail when a lexicon phrase appears in more than one category")
    parser.add_argument("--settings", type=str, help="settings.json holding the 'scoring' flags")
    parser.add_argument("--log-dir", type=str, help="Log directory (default: ~/.petscore/logs)")
    parser.add_argument("--verbose", action="store_true", help="Verbose console output")

    flags = parser.add_argument_group("feature flags (override settings)")
    flags.add_argument("--dry-matter", dest="dry_matter_normalization",
                       action="store_true", default=None, help="Dry-matter nutrition basis")
    flags.add_argument("--energy-pricing", dest="energy_based_pricing",
                       action="store_true", default=None, help="Price per 1000 kcal")
    flags.add_argument("--no-position-weighting", dest="position_weighting",
                       action="store_false", default=None, help="Legacy whole-text lexicon matching")
    flags.add_argument("--no-split-penalty", dest="split_ingredient_penalty",
                       action="store_false", default=None, help="Disable split-ingredient penalty")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(
        log_dir=args.log_dir,
        console_level=logging.INFO if args.verbose else logging.WARNING,
    )

    input_path = Path(args.input)
    output_path = Path(args.output) if args.output else \
        input_path.with_name(f"{input_path.stem}_scores.{args.format}")

    # Configuration: lexicon is mandatory, settings are optional
    try:
        if args.lexicon:
            lexicon = set_active_lexicon(args.lexicon, strict=args.strict_lexicon)
        else:
            lexicon = get_active_lexicon()
    except LexiconError as e:
        error_ctx = ErrorFormatter.format_lexicon_error(e, args.lexicon)
        logger.error(error_ctx.format_for_log())
        print(error_ctx.format_for_display(include_technical=args.verbose), file=sys.stderr)
        return EXIT_CONFIG_ERROR

    flags = load_feature_flags(args.settings).with_overrides(
        dry_matter_normalization=args.dry_matter_normalization,
        energy_based_pricing=args.energy_based_pricing,
        position_weighting=args.position_weighting,
        split_ingredient_penalty=args.split_ingredient_penalty,
    )

    try:
        records = read_catalog(input_path)
    except CatalogFormatError as e:
        error_ctx = ErrorFormatter.format_input_error(e, str(input_path))
        logger.error(error_ctx.format_for_log())
        print(error_ctx.format_for_display(include_technical=args.verbose), file=sys.stderr)
        return EXIT_INPUT_ERROR
    except OSError as e:
        error_ctx = ErrorFormatter.format_io_error(e, str(input_path), "read")
        logger.error(error_ctx.format_for_log())
        print(error_ctx.format_for_display(include_technical=args.verbose), file=sys.stderr)
        return EXIT_INPUT_ERROR

    try:
        results = score_catalog(records, lexicon=lexicon, feature_flags=flags)
    except ScoringInvariantError as e:
        error_ctx = ErrorFormatter.format_generic_error(e, "scoring", {"Input": str(input_path)})
        logger.error(error_ctx.format_for_log())
        print(error_ctx.format_for_display(include_technical=True), file=sys.stderr)
        return EXIT_SCORING_ERROR

    try:
        written = write_results(results, output_path, fmt=args.format)
    except OSError as e:
        error_ctx = ErrorFormatter.format_io_error(e, str(output_path), "write")
        logger.error(error_ctx.format_for_log())
        print(error_ctx.format_for_display(include_technical=args.verbose), file=sys.stderr)
        return EXIT_INPUT_ERROR

    flagged = sum(1 for _, r in results if r.red_flag is not None)
    print(f"Scored {written} products with lexicon {lexicon.version} → {output_path}")
    if args.verbose:
        meta = algorithm_metadata()
        weights = ", ".join(f"{name} {points:g}" for name, points in meta["weights"].items())
        print(f"  Algorithm {meta['version']} (updated {meta['last_updated']}), weights: {weights}")
    if flagged:
        print(f"  {flagged} product(s) capped by a red-flag tier")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
