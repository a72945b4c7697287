"""
Constants for ventilator telemetry decoding and ingestion.

Section vocabularies and classifier keywords mirror what deployed CPAP/BIPAP
firmware emits on the wire.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Device Types
# ============================================================================


class DeviceType(str, Enum):
    """Ventilator device classes with distinct wire formats."""

    CPAP = "CPAP"
    BIPAP = "BIPAP"


class DataSource(str, Enum):
    """Where an ingested frame came from."""

    CLOUD = "cloud"  # AWS IoT Core rule / webhook
    SOFTWARE = "software"  # Direct API call from an application
    DIRECT = "direct"


DEVICE_TYPE_VALUES = frozenset(t.value for t in DeviceType)
DATA_SOURCE_VALUES = frozenset(s.value for s in DataSource)

# ============================================================================
# Wire Format
# ============================================================================

FIELD_SEPARATOR = ","
FRAME_START_MARKER = "*"
FRAME_END_MARKER = "#"
FRAMING_MARKERS = frozenset({FRAME_START_MARKER, FRAME_END_MARKER})

# Section letters per device type, in the order firmware emits them
CPAP_SECTIONS = ("S", "G", "H", "I")
BIPAP_SECTIONS = ("S", "A", "B", "C", "D", "E", "F")

# ============================================================================
# Classifier Keywords
# ============================================================================

# Checked in this order; the first match decides
BIPAP_KEYWORDS = ("VAPS_MODE", "BIPAP")
CPAP_KEYWORDS = ("CPAP", "MANUALMODE")
CPAP_SECTION_TAGS = ("G,", "H,", "I,")

# More lettered sections than this means a BIPAP frame
SECTION_COUNT_THRESHOLD = 5

# ============================================================================
# Ingestion
# ============================================================================

DEFAULT_MAX_SAVE_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0

DEFAULT_HISTORY_LIMIT = 100

# Device type assumed when an IoT message names an unrecognized type
FALLBACK_IOT_DEVICE_TYPE = DeviceType.BIPAP
# Device type assumed when a config is created without one
DEFAULT_CONFIG_DEVICE_TYPE = DeviceType.CPAP

CONFIG_UPDATE_ACTION = "config_update"
ACK_STATUS_RECEIVED = "received"

# ============================================================================
# Default Settings
# ============================================================================

DEFAULT_DATABASE_PATH = str(Path.home() / ".ventwire" / "ventwire.db")

DEFAULT_LOG_DIR = Path.home() / ".ventwire" / "logs"
DEFAULT_LOG_FILE = "ventwire.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5
