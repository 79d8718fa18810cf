"""
Record classification for Apple Health export elements.
"""

from typing import Mapping, Optional

from ..core.constants import APPLE_PREFIX, RECORD_TAG, TYPE_ATTRIBUTE, TYPE_IDENTIFIER_PATTERN


def record_type_from_identifier(identifier: str) -> Optional[str]:
    """
    Derive the canonical record type from a HealthKit type identifier.

    Examples:
        >>> record_type_from_identifier("HKQuantityTypeIdentifierHeartRate")
        'HeartRate'
        >>> record_type_from_identifier("HKQuantityTypeIdentifierAppleStandTime")
        'StandTime'
        >>> record_type_from_identifier("HKDataTypeSleepDurationGoal") is None
        True
    """
    match = TYPE_IDENTIFIER_PATTERN.match(identifier)
    if not match:
        return None

    suffix = match.group(1)
    if suffix.startswith(APPLE_PREFIX):
        suffix = suffix[len(APPLE_PREFIX):]
    # "HKQuantityTypeIdentifierApple" leaves nothing to key on
    return suffix or None


def classify_record(tag: str, attributes: Mapping[str, str]) -> Optional[str]:
    """
    Decide whether an opened element is a health record of interest.

    Args:
        tag: Element name
        attributes: Element attributes

    Returns:
        The record type key, or None when the element should be ignored
    """
    if tag != RECORD_TAG:
        return None

    identifier = attributes.get(TYPE_ATTRIBUTE)
    if not identifier:
        return None

    return record_type_from_identifier(identifier)
