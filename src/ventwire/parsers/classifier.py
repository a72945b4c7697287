"""
Device-type auto-detection for frames that arrive without a declared type.

The checks and their order match what deployed firmware is known to send.
They are deliberately lexical: a frame is never split here.
"""

import logging
import re

from ventwire.constants import (
    BIPAP_KEYWORDS,
    CPAP_KEYWORDS,
    CPAP_SECTION_TAGS,
    SECTION_COUNT_THRESHOLD,
    DeviceType,
)

logger = logging.getLogger(__name__)

_LETTER_COMMA_RE = re.compile(r"[A-Z],")


def count_lettered_sections(raw_data: str) -> int:
    """Count non-overlapping occurrences of an uppercase letter followed by a comma."""
    return len(_LETTER_COMMA_RE.findall(raw_data))


def classify_device_type(raw_data: str) -> DeviceType:
    """
    Guess whether a raw frame came from a CPAP or a BIPAP device.

    Decision order, first match wins:
        1. ``VAPS_MODE`` or ``BIPAP`` anywhere -> BIPAP
        2. ``CPAP`` or ``MANUALMODE`` anywhere, or all of ``G,``/``H,``/``I,`` -> CPAP
        3. more than 5 letter-comma pairs -> BIPAP, otherwise CPAP

    Args:
        raw_data: Raw telemetry string

    Returns:
        DeviceType.CPAP or DeviceType.BIPAP; never raises
    """
    if any(keyword in raw_data for keyword in BIPAP_KEYWORDS):
        return DeviceType.BIPAP

    if any(keyword in raw_data for keyword in CPAP_KEYWORDS) or all(
        tag in raw_data for tag in CPAP_SECTION_TAGS
    ):
        return DeviceType.CPAP

    count = count_lettered_sections(raw_data)
    device_type = (
        DeviceType.BIPAP if count > SECTION_COUNT_THRESHOLD else DeviceType.CPAP
    )
    logger.debug(f"No type keyword in frame; {count} lettered sections -> {device_type.value}")
    return device_type
