"""
Command line entry point: categorize a saved set of search results.
"""
import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from services.config import Settings, load_config
from services.logging import setup_logging
from workflows.presentation import PresentationPipeline

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="search-insights",
        description="Categorize raw search results and build a presentable answer",
    )
    parser.add_argument("results", help="JSON file with search results (array or {\"results\": [...]})")
    parser.add_argument("-q", "--query", required=True, help="Search query the results belong to")
    parser.add_argument("--llm-file", help="Text/markdown file with the LLM answer, if any")
    parser.add_argument("-o", "--output", help="Write JSON here instead of stdout")
    parser.add_argument("-c", "--config", help="Path to config.yml (default: resources/config.yml)")
    return parser


def _load_settings(path: Optional[str]) -> Settings:
    if path:
        return load_config(path)
    try:
        return load_config()
    except FileNotFoundError:
        return Settings()


def main(argv: Optional[List[str]] = None) -> int:
    start_time = time.perf_counter()
    args = build_parser().parse_args(argv)

    settings = _load_settings(args.config)
    setup_logging(settings.log_level)

    # ----------------------------
    # Read inputs
    # ----------------------------
    try:
        results = json.loads(Path(args.results).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read results file {args.results}: {e}")
        return 1

    llm_output = None
    if args.llm_file:
        try:
            llm_output = Path(args.llm_file).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Cannot read LLM file {args.llm_file}: {e}")
            return 1

    # ----------------------------
    # Run pipeline
    # ----------------------------
    pipeline = PresentationPipeline(settings)
    result = pipeline.run(args.query, results, llm_output)
    payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    # ----------------------------
    # Emit
    # ----------------------------
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        logger.info(f"Wrote {len(result.categories)} categories to {output}")
    else:
        sys.stdout.write(payload + "\n")

    logger.info(f"Total time: {time.perf_counter() - start_time}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
