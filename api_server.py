"""
Flask API Server - Listing Extraction API
==========================================
API endpoint for extracting structured listing data from saved listing pages.

Features:
- Single or batch page processing
- Parallel processing with configurable workers
- Returns the structured listing plus a validation verdict
"""

from flask import Flask, request, jsonify
from flask_cors import CORS
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Any
import logging
from datetime import datetime
import traceback
import os
from dotenv import load_dotenv

from listing_models import ListingValidationError, ParsedListing, find_missing_fields, validate_listing
from listing_parser import ListingHTMLParser
from text_normalizer import html_to_text
from api_config import (
    MAX_WORKERS as DEFAULT_MAX_WORKERS,
    FLASK_HOST,
    FLASK_PORT,
    FLASK_DEBUG,
    MAX_BATCH_SIZE,
    MAX_HTML_BYTES,
)

# Load environment variables
load_dotenv()

# Initialize Flask app
app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = MAX_HTML_BYTES
CORS(app)  # Enable CORS for all routes

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize parser (holds only static configuration, safe to share between workers)
parser = ListingHTMLParser()

# Configuration (can be updated via API)
MAX_WORKERS = DEFAULT_MAX_WORKERS


def extract_listing_from_html(html_content: str, name: str = '') -> Dict[str, Any]:
    """
    Extract the listing from a single saved page.

    Args:
        html_content: Raw HTML string
        name: Caller-supplied label echoed back in the result (e.g. file name)

    Returns:
        Dict with the listing, validation verdict and metadata
    """
    try:
        listing = parser.parse_html(html_content)
        missing = find_missing_fields(listing)
        return {
            'name': name,
            'success': True,
            'valid': not missing,
            'missing_fields': missing,
            'listing': listing.to_dict(),
            'error': None,
        }
    except Exception as e:
        logger.error(f"Error extracting listing from {name or 'request'}: {e}", exc_info=True)
        return {
            'name': name,
            'success': False,
            'valid': False,
            'missing_fields': [],
            'listing': None,
            'error': f"{type(e).__name__}: {str(e)}",
        }


@app.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'service': 'Listing Extraction API',
        'timestamp': datetime.now().isoformat()
    })


@app.route('/extract', methods=['POST'])
def extract_listings():
    """
    Extract listings from saved page HTML.

    Request body (single page):
    {
        "html": "<html>...</html>",
        "name": "listing.html",   # Optional
        "strict": true            # Optional, reject unusable listings with 422
    }

    Request body (batch):
    {
        "html_contents": [
            {"html": "<html>...</html>", "name": "a.html"},
            ...
        ],
        "max_workers": 4  # Optional, defaults to config value
    }

    Response:
    {
        "success": true,
        "results": [
            {
                "name": "a.html",
                "success": true,
                "valid": true,
                "missing_fields": [],
                "listing": {
                    "title": "...",
                    "price": "£24.99",
                    "descriptionHtml": "...",
                    "itemSpecifics": [{"label": "Brand", "value": "..."}],
                    "itemId": "123456789012",
                    "category": "Toilet Seats > Soft Close"
                }
            }
        ],
        "total_processed": 1,
        "total_valid": 1,
        "processing_time_seconds": 0.12
    }
    """
    start_time = datetime.now()

    try:
        data = request.get_json(silent=True)

        if not data or not isinstance(data, dict):
            return jsonify({
                'success': False,
                'error': 'No JSON data provided'
            }), 400

        # Check if it's a single page or batch
        if 'html' in data:
            html_content = data.get('html') or ''
            name = data.get('name', '')

            if not isinstance(html_content, str) or not html_content.strip():
                return jsonify({
                    'success': False,
                    'error': 'HTML content is required'
                }), 400

            result = extract_listing_from_html(html_content, name)

            if data.get('strict') and result['success'] and not result['valid']:
                error = ListingValidationError(result['missing_fields'])
                logger.info(f"Rejected listing {name or '(unnamed)'}: missing {result['missing_fields']}")
                return jsonify({
                    'success': False,
                    'error': str(error),
                    'missing_fields': error.missing_fields,
                    'results': [result]
                }), 422

            processing_time = (datetime.now() - start_time).total_seconds()

            return jsonify({
                'success': result['success'],
                'results': [result],
                'total_processed': 1,
                'total_valid': 1 if result['valid'] else 0,
                'processing_time_seconds': round(processing_time, 2)
            })

        elif 'html_contents' in data:
            # Batch processing
            html_contents = data.get('html_contents', [])
            max_workers = data.get('max_workers', MAX_WORKERS)

            if not isinstance(html_contents, list):
                return jsonify({
                    'success': False,
                    'error': 'html_contents must be an array'
                }), 400

            if not html_contents:
                return jsonify({
                    'success': False,
                    'error': 'html_contents array is required'
                }), 400

            # Check batch size limit
            if len(html_contents) > MAX_BATCH_SIZE:
                return jsonify({
                    'success': False,
                    'error': f'Batch size exceeds maximum of {MAX_BATCH_SIZE}. Received {len(html_contents)} items.'
                }), 400

            if not all(isinstance(item, dict) for item in html_contents):
                return jsonify({
                    'success': False,
                    'error': 'Each html_contents entry must be an object with an "html" field'
                }), 400

            # Validate max_workers
            try:
                max_workers = int(max_workers)
                if max_workers < 1:
                    max_workers = 1
                elif max_workers > 20:  # Cap at 20 for safety
                    max_workers = 20
            except (ValueError, TypeError):
                max_workers = MAX_WORKERS

            logger.info(f"Processing {len(html_contents)} saved pages with {max_workers} workers")

            # Process in parallel, report in request order
            results = [None] * len(html_contents)
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                future_to_index = {
                    executor.submit(
                        extract_listing_from_html,
                        item.get('html') or '',
                        item.get('name', f'item_{index}')
                    ): index
                    for index, item in enumerate(html_contents)
                }

                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    results[index] = future.result()

            total_valid = sum(1 for r in results if r.get('valid'))
            processing_time = (datetime.now() - start_time).total_seconds()

            return jsonify({
                'success': True,
                'results': results,
                'total_processed': len(results),
                'total_valid': total_valid,
                'processing_time_seconds': round(processing_time, 2),
                'max_workers_used': max_workers
            })

        else:
            return jsonify({
                'success': False,
                'error': 'Invalid request format. Provide either {"html": "..."} or {"html_contents": [...]}'
            }), 400

    except Exception as e:
        logger.error(f"Error in extract_listings endpoint: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'error': f"{type(e).__name__}: {str(e)}",
            'traceback': traceback.format_exc() if app.debug else None
        }), 500


@app.route('/validate', methods=['POST'])
def validate_endpoint():
    """
    Check an already extracted listing (wire format) before further processing.

    Request body: {"listing": {"title": ..., "descriptionHtml": ..., "itemSpecifics": [...]}}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('listing'), dict):
        return jsonify({
            'success': False,
            'error': 'listing object is required'
        }), 400

    try:
        validate_listing(ParsedListing.from_dict(data['listing']))
    except ListingValidationError as e:
        return jsonify({
            'success': False,
            'error': str(e),
            'missing_fields': e.missing_fields
        }), 422

    return jsonify({'success': True, 'missing_fields': []})


@app.route('/text', methods=['POST'])
def text_endpoint():
    """
    Render description markup as plain text.

    Request body: {"html": "<p>...</p>"}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('html'), str):
        return jsonify({
            'success': False,
            'error': 'html string is required'
        }), 400

    return jsonify({'success': True, 'text': html_to_text(data['html'])})


@app.route('/config', methods=['GET', 'POST'])
def config_endpoint():
    """
    Get or update configuration.

    GET: Returns current configuration
    POST: Updates configuration
    {
        "max_workers": 4
    }
    """
    global MAX_WORKERS

    if request.method == 'GET':
        return jsonify({
            'max_workers': MAX_WORKERS,
            'max_batch_size': MAX_BATCH_SIZE,
            'description_max_length': parser.config.description_max_length
        })

    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({
            'success': False,
            'error': 'JSON object body is required'
        }), 400

    if 'max_workers' in data:
        try:
            max_workers = int(data['max_workers'])
            if 1 <= max_workers <= 20:
                MAX_WORKERS = max_workers
            else:
                return jsonify({
                    'success': False,
                    'error': 'max_workers must be between 1 and 20'
                }), 400
        except (ValueError, TypeError):
            return jsonify({
                'success': False,
                'error': 'max_workers must be an integer'
            }), 400

    return jsonify({
        'success': True,
        'message': 'Configuration updated',
        'config': {
            'max_workers': MAX_WORKERS
        }
    })


if __name__ == '__main__':
    # Run the Flask app (use gunicorn in production)
    port = int(os.getenv('PORT', FLASK_PORT))
    logger.info(f"Starting Listing Extraction API on {FLASK_HOST}:{port}")
    logger.info(f"Default max_workers: {MAX_WORKERS}, max_batch_size: {MAX_BATCH_SIZE}")
    logger.info(f"Environment: {os.getenv('ENVIRONMENT', 'development')}")
    app.run(host=FLASK_HOST, port=port, debug=FLASK_DEBUG)
