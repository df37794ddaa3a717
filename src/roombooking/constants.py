#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
PACKAGE_NAME = "roombooking"
CONFIG_PATH = f"pkg://{PACKAGE_NAME}.configs"
DEFAULT_CONFIG_NAME = "book_rooms"
RESULTS_FILE_NAME = "results.jsonl"
SUMMARY_FILE_NAME = "summary.json"
MALFORMED_REQUEST = "malformed_request"
"""Outcome kind recorded for input lines which are not valid requests."""
