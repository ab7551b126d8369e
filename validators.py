"""
Input Validation & Sanitization Utilities
Field-level validation for dashboard form submissions and API requests
"""
import math
import re
from typing import Dict, Any, List, Optional, Tuple
import logging

from database import models

logger = logging.getLogger(__name__)

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?1?\d{7,15}$')
URL_PATTERN = re.compile(r'^https?://[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}.*$')

# Floating point slack when comparing money amounts
MONEY_TOLERANCE = 0.001


class ValidationError(Exception):
    """Raised when submitted data fails validation; carries per-field messages"""
    def __init__(self, message: str, field: Optional[str] = None,
                 errors: Optional[Dict[str, List[str]]] = None):
        self.message = message
        self.field = field
        self.errors = errors or ({field: [message]} if field else {})
        super().__init__(self.message)


class FieldErrors:
    """Collects messages per field and raises a single ValidationError"""

    def __init__(self):
        self.errors: Dict[str, List[str]] = {}

    def add(self, field: str, message: str):
        self.errors.setdefault(field, []).append(message)

    def check(self, field: str, result: Tuple[bool, Optional[str]]):
        is_valid, error = result
        if not is_valid:
            self.add(field, error)

    def raise_if_any(self, message: str = 'Invalid data provided.'):
        if self.errors:
            logger.debug(f"Validation failed: {self.errors}")
            raise ValidationError(message, errors=self.errors)


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    cleaned_phone = re.sub(r'[\s\-\(\)\.]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_url(url: str) -> Tuple[bool, Optional[str]]:
    """Validate URL format"""
    if not url or not isinstance(url, str):
        return False, "URL must be a non-empty string"

    if not URL_PATTERN.match(url):
        return False, "Invalid URL format"

    if len(url) > 2048:
        return False, "URL too long"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"
    if isinstance(value, float) and not math.isfinite(value):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_choice(value: Any, choices: List[str]) -> Tuple[bool, Optional[str]]:
    if value not in choices:
        return False, f"Must be one of: {', '.join(choices)}"
    return True, None


def coerce_number(value: Any) -> Optional[float]:
    """Parse form input into a float. Returns None for anything non-numeric or non-finite."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return None
    # nan and inf are not amounts
    return number if math.isfinite(number) else None


def coerce_int(value: Any) -> Optional[int]:
    number = coerce_number(value)
    if number is None or number != int(number):
        return None
    return int(number)


def sanitize_string(value: Any, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing null bytes and surrounding whitespace

    Args:
        value: Value to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if value is None:
        return ''
    if not isinstance(value, str):
        value = str(value)

    sanitized = value.replace('\x00', '').strip()

    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


# ==================== FORM VALIDATORS ====================

def validate_customer_form(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the new-customer form.

    Returns:
        Cleaned form values

    Raises:
        ValidationError: With per-field messages
    """
    errors = FieldErrors()
    cleaned = {key: sanitize_string(data.get(key), 200) for key in (
        'firstName', 'lastName', 'email', 'phone', 'companyName',
        'street', 'city', 'state', 'zipCode', 'taxRegion', 'notes', 'referredBy',
    )}

    if not cleaned['firstName']:
        errors.add('firstName', 'First name is required.')
    if not cleaned['lastName']:
        errors.add('lastName', 'Last name is required.')
    if not cleaned['email']:
        errors.add('email', 'Email is required.')
    else:
        errors.check('email', validate_email(cleaned['email']))
    if not cleaned['phone']:
        errors.add('phone', 'Phone is required.')
    else:
        errors.check('phone', validate_phone(cleaned['phone']))

    errors.raise_if_any('Please correct the highlighted customer fields.')
    return cleaned


def validate_tax_zone_form(data: Dict[str, Any]) -> Tuple[str, float]:
    """
    Validate a tax zone submission. The rate is entered as a percentage.

    Returns:
        (name, rate as a fraction)
    """
    errors = FieldErrors()
    name = sanitize_string(data.get('name'), 100)
    if not name:
        errors.add('name', 'Tax zone name is required.')

    raw_rate = data.get('rate')
    rate_percent = coerce_number(raw_rate)
    if raw_rate is None or (isinstance(raw_rate, str) and not raw_rate.strip()):
        errors.add('rate', 'Tax rate is required.')
    elif rate_percent is None:
        errors.add('rate', 'Tax rate must be a number.')
    else:
        errors.check('rate', validate_number_range(rate_percent, 0, 100))

    errors.raise_if_any('Invalid tax zone.')
    return name, round(rate_percent / 100.0, 6)


def validate_line_items(items: Any, field: str = 'lineItems', required: bool = True) -> List[Dict[str, Any]]:
    """Normalise line items to {description, quantity, unitPrice} with numeric values."""
    errors = FieldErrors()
    if items is None:
        items = []
    if not isinstance(items, list):
        raise ValidationError('Line items must be a list.', field=field)
    if required and not items:
        raise ValidationError('At least one line item is required.', field=field)

    cleaned = []
    for idx, item in enumerate(items):
        key = f"{field}[{idx}]"
        if not isinstance(item, dict):
            errors.add(key, 'Line item must be an object.')
            continue
        description = sanitize_string(item.get('description'), 500)
        quantity = coerce_number(item.get('quantity', 1))
        unit_price = coerce_number(item.get('unitPrice', 0))
        if not description:
            errors.add(f"{key}.description", 'Description is required.')
        if quantity is None or quantity <= 0:
            errors.add(f"{key}.quantity", 'Quantity must be greater than 0.')
        if unit_price is None or unit_price < 0:
            errors.add(f"{key}.unitPrice", 'Unit price must be 0 or more.')
        line = {**item, 'description': description, 'quantity': quantity, 'unitPrice': unit_price}
        cleaned.append(line)

    errors.raise_if_any('Invalid line items.')
    return cleaned


def validate_money(value: Any, field: str, minimum: float = 0.0, exclusive: bool = False) -> float:
    """Parse an amount and enforce a lower bound."""
    amount = coerce_number(value)
    if amount is None:
        raise ValidationError('Amount must be a number.', field=field)
    if exclusive and amount <= minimum:
        raise ValidationError(f'Amount must be greater than {minimum:g}.', field=field)
    if not exclusive and amount < minimum:
        raise ValidationError(f'Amount must be at least {minimum:g}.', field=field)
    return amount


def validate_quantity(value: Any, field: str = 'quantity', minimum: int = 1) -> int:
    quantity = coerce_int(value)
    if quantity is None or quantity < minimum:
        raise ValidationError(f'Quantity must be at least {minimum}.', field=field)
    return quantity


def validate_vendor_form(data: Dict[str, Any]) -> Dict[str, Any]:
    errors = FieldErrors()
    cleaned = {key: sanitize_string(data.get(key), 300) for key in (
        'name', 'contactName', 'phone', 'email', 'website', 'address',
    )}
    if not cleaned['name']:
        errors.add('name', 'Vendor name is required.')
    if cleaned['email']:
        errors.check('email', validate_email(cleaned['email']))
    if cleaned['website']:
        errors.check('website', validate_url(cleaned['website']))

    trades = data.get('trades') or []
    if not isinstance(trades, list):
        trades = [trades]
    for trade in trades:
        errors.check('trades', validate_choice(trade, models.TRADES))

    categories = data.get('categories') or []
    if isinstance(categories, str):
        categories = [c.strip() for c in categories.split(',') if c.strip()]

    errors.raise_if_any('Invalid vendor.')
    cleaned['trades'] = trades
    cleaned['categories'] = categories
    cleaned['preferred'] = bool(data.get('preferred', False))
    return cleaned


def format_validation_error(field: Optional[str], message: str,
                            errors: Optional[Dict[str, List[str]]] = None) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message
        errors: Per-field messages

    Returns:
        Error response dictionary
    """
    return {
        'success': False,
        'error': 'Validation Error',
        'field': field,
        'message': message,
        'errors': errors or ({field: [message]} if field else {}),
    }


def format_success_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """
    Format success response for consistent API responses

    Args:
        data: Response data
        message: Success message

    Returns:
        Success response dictionary
    """
    return {
        'success': True,
        'message': message,
        'data': data
    }
