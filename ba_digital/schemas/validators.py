"""
Custom Validators
=================

Fungsi validasi untuk business rules dokumen BA
"""

from decimal import Decimal
import re

SIGNATURE_DATA_URL = re.compile(r'^data:image/(png|jpeg|jpg);base64,')


def validate_non_negative_number(value: Decimal) -> Decimal:
    """Validate non-negative number"""
    if value is not None and value < 0:
        raise ValueError('Value must be non-negative')
    return value


def validate_percentage(value: Decimal) -> Decimal:
    """Validate percentage (0-100)"""
    if value is not None and not (0 <= value <= 100):
        raise ValueError('Percentage must be between 0 and 100')
    return value


def validate_signature_data_url(value: str) -> str:
    """Validate signature berupa data URL image PNG/JPEG base64"""
    if not value or not SIGNATURE_DATA_URL.match(value):
        raise ValueError('Invalid signature format. Must be base64 encoded PNG or JPEG image')
    return value
