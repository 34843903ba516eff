"""Payer number validation and display formatting"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple
from finance_tracker.domain.exceptions import ValidationError
from finance_tracker.config import settings
from finance_tracker.domain.models import CarrierService

_NON_DIGITS = re.compile(r"\D")


def clean_number(number: str) -> str:
    """Digits only"""
    return _NON_DIGITS.sub("", number)


def is_valid_payer_number(
    number: str,
    service: CarrierService | str,
    patterns: Optional[Dict[str, str]] = None,
) -> bool:
    """
    Check a payer number against the carrier's numbering plan.

    Non-digits are ignored; what remains must be exactly nine digits and match
    the carrier's pattern from `carrier_number_patterns`. Unknown carriers are
    never valid.
    """
    patterns = patterns if patterns is not None else settings.carrier_number_patterns
    digits = clean_number(number)
    if len(digits) != 9:
        return False

    key = service.value if isinstance(service, CarrierService) else str(service).upper()
    pattern = patterns.get(key)
    if pattern is None:
        return False
    return re.fullmatch(pattern, digits) is not None


def format_phone_number(number: str, country_code: Optional[str] = None) -> str:
    """Render a nine-digit number with the country prefix; anything else unchanged"""
    country_code = country_code or settings.phone_country_code
    digits = clean_number(number)
    if len(digits) == 9:
        return f"+{country_code} {digits}"
    return number


def validate_collect_request(payload: Dict[str, Any]) -> Tuple[Decimal, CarrierService, str]:
    """
    Check a relay collection body and return (amount, service, payer digits).

    Raises:
        ValidationError: with the message the relay sends back to the caller
    """
    amount, service, payer = payload.get("amount"), payload.get("service"), payload.get("payer")
    if not amount or not service or not payer:
        raise ValidationError("Missing required fields: amount, service, payer")

    try:
        amount = Decimal(str(amount))
    except InvalidOperation as e:
        raise ValidationError("Amount must be a number") from e
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Amount must be greater than 0")

    try:
        service = CarrierService(service)
    except ValueError as e:
        raise ValidationError("Invalid service. Must be one of: MTN, ORANGE, MOOV") from e

    digits = clean_number(str(payer))
    if len(digits) != 9:
        raise ValidationError("Invalid phone number format. Must be 9 digits")

    return amount, service, digits
