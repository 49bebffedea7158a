"""
Configuration - Listing Extraction System
==========================================
Centralized configuration for the listing parser and the batch runner.
"""

from pathlib import Path
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# ============ Environment Detection ============
ENVIRONMENT = os.getenv('ENVIRONMENT', 'development').lower()
IS_PRODUCTION = ENVIRONMENT == 'production'

# ============ Parser Configuration ============

# Placeholder stored in any field that could not be extracted
NOT_FOUND = 'N/A'

# Title candidates must be longer than this (rejects icon labels / empty spans)
TITLE_MIN_LENGTH = int(os.getenv('TITLE_MIN_LENGTH', '5'))

# Item number candidates must have more digits than this
ITEM_ID_MIN_DIGITS = int(os.getenv('ITEM_ID_MIN_DIGITS', '5'))

# Minimum digit run for the "Item number: ..." full-text fallback
ITEM_ID_FALLBACK_DIGITS = int(os.getenv('ITEM_ID_FALLBACK_DIGITS', '10'))

# Description containers must hold more markup than this
DESCRIPTION_MIN_LENGTH = int(os.getenv('DESCRIPTION_MIN_LENGTH', '50'))

# Whole-page fallback must hold more content than this
FALLBACK_MIN_LENGTH = int(os.getenv('FALLBACK_MIN_LENGTH', '500'))

# Whole-page fallback content is cut to this many characters
FALLBACK_MAX_LENGTH = int(os.getenv('FALLBACK_MAX_LENGTH', '10000'))

# Hard upper bound for the stored description
DESCRIPTION_MAX_LENGTH = int(os.getenv('DESCRIPTION_MAX_LENGTH', '20000'))

# Breadcrumb segments are joined with this
CATEGORY_SEPARATOR = ' > '

# Markers appended / prepended to description content
FALLBACK_TRUNCATION_MARKER = '... (truncated)'
TRUNCATION_MARKER = '... (truncated for AI processing)'
PAGE_DISCLAIMER = (
    '<div style="font-style: italic; color: #888;">'
    '(Potential description extracted from page, may include noise):</div>\n'
)
BODY_DISCLAIMER = (
    '<div style="font-style: italic; color: #888;">'
    '(Potential description extracted from page body, may include noise):</div>\n'
)

# ============ Batch Runner Configuration ============

# Directory holding saved listing pages ("Webpage, Complete" saves)
INPUT_DIR = Path(os.getenv('INPUT_DIR', 'saved_pages'))

# Number of pages parsed in parallel
MAX_WORKERS = int(os.getenv('MAX_WORKERS', '4'))

# ============ Storage Configuration ============

# Whether to save results to files (disabled in production by default)
SAVE_RESULTS = os.getenv('SAVE_RESULTS', 'False' if IS_PRODUCTION else 'True').lower() == 'true'

# Whether to save logs to files
SAVE_LOGS = os.getenv('SAVE_LOGS', 'True').lower() == 'true'

# ============ Directory Configuration ============

# Base directory (current working directory)
BASE_DIR = Path.cwd()

# Results directory (only used if SAVE_RESULTS is True)
RESULTS_DIR = BASE_DIR / "results" if SAVE_RESULTS else None

# Logs directory (only used if SAVE_LOGS is True)
LOGS_DIR = BASE_DIR / "logs" if SAVE_LOGS else None


# ============ Logging Configuration ============

# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Whether to log to file (uses SAVE_LOGS setting)
LOG_TO_FILE = SAVE_LOGS
