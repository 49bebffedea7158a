"""
Listing Loader - Listing Extraction System
==========================================
Loads saved listing pages from disk and runs the parser over them.

Features:
- Reads every *.htm / *.html page in a directory
- Parallel parsing with a worker pool
- Validation verdict per listing
- JSON results and a batch summary (when SAVE_RESULTS is enabled)
"""

import argparse
import json
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from listing_models import ListingValidationError, validate_listing
from listing_parser import ListingHTMLParser

from config import (
    INPUT_DIR,
    MAX_WORKERS,
    RESULTS_DIR,
    LOGS_DIR,
    SAVE_RESULTS,
    SAVE_LOGS,
    LOG_LEVEL,
    LOG_TO_FILE,
)

PAGE_SUFFIXES = ('.htm', '.html')


def load_saved_page(path: Path) -> str:
    """Read a saved page; undecodable bytes are replaced rather than fatal."""
    return Path(path).read_text(encoding='utf-8', errors='replace')


def find_saved_pages(input_dir: Path) -> List[Path]:
    """Saved listing pages in a directory, sorted by name."""
    return sorted(
        p for p in Path(input_dir).iterdir()
        if p.is_file() and p.suffix.lower() in PAGE_SUFFIXES
    )


class ListingLoader:
    """Parses directories of saved listing pages and manages result files."""

    def __init__(self, parser: Optional[ListingHTMLParser] = None,
                 results_dir: Optional[Path] = RESULTS_DIR,
                 strict: bool = False):
        """Initialize loader with parser and output directory."""
        self.logger = logging.getLogger(__name__)
        self.parser = parser or ListingHTMLParser()
        self.results_dir = Path(results_dir) if results_dir else None
        self.strict = strict
        if self.results_dir:
            self.results_dir.mkdir(parents=True, exist_ok=True)

    def process_page(self, path: Path) -> Dict[str, Any]:
        """
        Parse and validate a single saved page.

        Args:
            path: Saved page file

        Returns:
            Result dict with listing, validation verdict and error (if any)
        """
        name = Path(path).name
        try:
            html = load_saved_page(path)
            listing = self.parser.parse_html(html)
        except OSError as e:
            self.logger.error(f"Could not read {name}: {e}")
            return {'file': name, 'success': False, 'valid': False,
                    'missing_fields': [], 'error': f"{type(e).__name__}: {e}"}
        except Exception as e:
            self.logger.error(f"Error processing {name}: {e}", exc_info=True)
            return {'file': name, 'success': False, 'valid': False,
                    'missing_fields': [], 'error': f"{type(e).__name__}: {e}"}

        result = {
            'file': name,
            'success': True,
            'valid': True,
            'missing_fields': [],
            'error': None,
            'listing': listing.to_dict(),
        }
        try:
            validate_listing(listing)
        except ListingValidationError as e:
            result['valid'] = False
            result['missing_fields'] = e.missing_fields
            if self.strict:
                result['success'] = False
                result['error'] = str(e)
            self.logger.warning(f"{name}: missing {', '.join(e.missing_fields)}")

        if self.results_dir:
            result_path = self.results_dir / f"{Path(name).stem}.json"
            with open(result_path, 'w', encoding='utf-8') as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            self.logger.info(f"  Saved to: {result_path.name}")

        return result

    def process_directory(self, input_dir: Path, max_workers: int = MAX_WORKERS) -> Dict[str, Any]:
        """
        Process every saved page in a directory.

        Args:
            input_dir: Directory with saved pages
            max_workers: Pages parsed in parallel

        Returns:
            Summary dict with statistics and per-page results
        """
        pages = find_saved_pages(input_dir)
        self.logger.info(f"Starting processing of {len(pages)} saved pages from {input_dir}")
        start_time = time.time()

        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
            results = list(executor.map(self.process_page, pages))

        successful = sum(1 for r in results if r['success'])
        valid = sum(1 for r in results if r['valid'])
        duration = time.time() - start_time
        summary = {
            'batch_id': f"batch_{datetime.now().strftime('%Y%m%d_%H%M%S')}",
            'total_pages': len(pages),
            'successful': successful,
            'failed': len(pages) - successful,
            'valid': valid,
            'success_rate': f"{(successful / len(pages) * 100):.1f}%" if pages else "0%",
            'total_duration_seconds': round(duration, 2),
            'timestamp': datetime.now().isoformat(),
            'results': results,
        }

        # Save batch summary (only if enabled)
        if self.results_dir:
            summary_path = self.results_dir / f"batch_summary_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
            with open(summary_path, 'w', encoding='utf-8') as f:
                json.dump(summary, f, indent=2, ensure_ascii=False)
            self.logger.info(f"Summary saved to: {summary_path.name}")

        self.logger.info(f"\n{'='*60}")
        self.logger.info("BATCH SUMMARY")
        self.logger.info(f"{'='*60}")
        self.logger.info(f"Total pages: {summary['total_pages']}")
        self.logger.info(f"Successful: {summary['successful']}")
        self.logger.info(f"Failed: {summary['failed']}")
        self.logger.info(f"Valid listings: {summary['valid']}")
        self.logger.info(f"Success Rate: {summary['success_rate']}")
        self.logger.info(f"Duration: {summary['total_duration_seconds']}s")

        return summary


def setup_logging():
    """Configure logging with console and (optional) dated file output."""
    handlers: List[logging.Handler] = []

    console_handler = logging.StreamHandler()
    # Set UTF-8 encoding for console handler (Windows compatibility)
    if hasattr(console_handler.stream, 'reconfigure'):
        try:
            console_handler.stream.reconfigure(encoding='utf-8', errors='replace')
        except (AttributeError, ValueError):
            pass  # Fallback to default if reconfigure not available
    handlers.append(console_handler)

    if LOG_TO_FILE and LOGS_DIR:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOGS_DIR / f"extraction_{datetime.now().strftime('%Y%m%d')}.log"
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Extract structured data from saved listing pages")
    ap.add_argument('input_dir', nargs='?', default=str(INPUT_DIR),
                    help="Directory with saved listing pages")
    ap.add_argument('--workers', type=int, default=MAX_WORKERS,
                    help="Pages parsed in parallel")
    ap.add_argument('--strict', action='store_true',
                    help="Count listings missing title, description or item specifics as failures")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function."""
    args = parse_args(argv)
    setup_logging()

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        print(f"Error: {input_dir} is not a directory")
        print("Save listing pages as 'Webpage, Complete' into it and run again.")
        return 1

    print("\n" + "="*60)
    print("Listing Extraction System - Saved Page Loader")
    print("="*60 + "\n")

    loader = ListingLoader(strict=args.strict)
    summary = loader.process_directory(input_dir, max_workers=args.workers)

    print("\n" + "="*60)
    print("[OK] Processing Complete!")
    print("="*60)
    if SAVE_RESULTS and RESULTS_DIR:
        print(f"\nResults saved to: {RESULTS_DIR}/")
    if SAVE_LOGS and LOGS_DIR:
        print(f"Logs saved to: {LOGS_DIR}/")

    return 0 if summary['failed'] == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
