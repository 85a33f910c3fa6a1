from __future__ import annotations

MS_PER_HOUR = 3_600_000
EPOCH_SECONDS_LIMIT = 10_000_000_000

MIN_SCALE = 30
MAX_SCALE = 300
DEFAULT_SCALE = 110
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9

LANE_EPSILON_MS = 60_000

BAR_MIN_WIDTH = 4.0
BAR_BASE_HEIGHT = 26
BAR_MEDIUM_HEIGHT = 32
BAR_LARGE_HEIGHT = 40
BAR_MEDIUM_WIDTH = 120
BAR_LARGE_WIDTH = 220
LANE_GAP = 6
ROW_PADDING_Y = 10
EMPTY_ROW_HEIGHT = (ROW_PADDING_Y * 2) + BAR_BASE_HEIGHT

CONNECTOR_ELBOW = 30.0

DOMAIN_MARGIN_HOURS = 1
EMPTY_DOMAIN_HOURS = 12
MIN_TIMELINE_WIDTH = 800
LABEL_WIDTH = 300
SNAPSHOT_EXTRA_HEIGHT = 120
HEADER_LABEL_EVERY = 6

RESOURCE_SATURATION = 0.70
RESOURCE_LIGHTNESS = 0.45

DISPLAY_DATE_FORMAT = "%d.%m.%Y %H:%M"
AXIS_LABEL_FORMAT = "%d.%m %H:%M"
AXIS_DAY_FORMAT = "%d.%m.%Y"
EXPORT_NAME_FORMAT = "plan_%Y-%m-%d_%H-%M"

FIELD_ID = "id"
FIELD_START = "start"
FIELD_END = "end"
FIELD_RESOURCE = "resource"
FIELD_QTY = "qty"
FIELDS = (FIELD_ID, FIELD_START, FIELD_END, FIELD_RESOURCE, FIELD_QTY)
REQUIRED_FIELDS = (FIELD_ID, FIELD_START, FIELD_END, FIELD_RESOURCE)

EXPORT_HEADER = [
    "Order No.",
    "Resource",
    "Start Time",
    "End Time",
    "Qty.",
    "Duration (min)",
]

DEMO_QUERY = "3260996"
DEMO_CSV = (
    "Order No.,Product,Part No.,Qty.,Op. No.,Resource,Resource Group Name,Start Time,End Time\n"
    "3260996,Przykład A,Q-STA,25,10,10ZM4,GRP,10.01.2025 08:00,10.01.2025 16:00\n"
    "3260996,Przykład A,Q-STA,25,20,10411/1,GRP,11.01.2025 06:00,12.01.2025 14:00\n"
    "3260996,Przykład A,Q-STA,25,30,10431/2,GRP,12.01.2025 15:00,13.01.2025 10:00\n"
)
