#!/usr/bin/env python3
"""
Run script for the Lab Quantity Ledger
"""

import argparse
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file before the app reads its config
load_dotenv()

from app import create_app  # noqa: E402
from app.build import build_database  # noqa: E402
from app.utils.logger import get_logger  # noqa: E402

# Run 'python generate_env.py' to create a .env file with a SECRET_KEY.

logger = get_logger("lab_ledger.run")


def parse_arguments():
    parser = argparse.ArgumentParser(description='Lab Quantity Ledger')
    parser.add_argument('--build-only', action='store_true',
                        help='Create database tables and exit without starting the web server')
    parser.add_argument('--enable-debug-data', action='store_true', default=False,
                        help='Insert sample inventory items and a maintenance task')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    app = create_app()
    build_database(enable_debug_data=args.enable_debug_data, app=app)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
