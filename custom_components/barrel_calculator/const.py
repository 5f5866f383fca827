DOMAIN = "barrel_calculator"

CONF_PROFILE = "profile"
CONF_CALCULATION_MODE = "calculation_mode"
CONF_MAX_HEIGHT = "max_height_cm"
CONF_CAPACITY = "capacity_liters"
CONF_RADIUS = "radius_cm"
CONF_HEIGHT_SENSOR = "height_sensor"
CONF_MAX_HISTORY = "max_history"
CONF_EXPORT_DIRECTORY = "export_directory"

MODE_LINEAR = "linear"  # volume proportional to fill ratio
MODE_CYLINDRICAL = "cylindrical"  # volume from radius and height
CALCULATION_MODES = [MODE_LINEAR, MODE_CYLINDRICAL]

PROFILE_LINEAR_208 = "standard_208_linear"
PROFILE_CYLINDRICAL_208 = "standard_208_cylindrical"
PROFILE_CUSTOM = "custom"

# Standard 208 L steel drum, 57 cm inner diameter
PROFILE_PRESETS: dict[str, dict] = {
    PROFILE_LINEAR_208: {
        CONF_CALCULATION_MODE: MODE_LINEAR,
        CONF_MAX_HEIGHT: 87.0,
        CONF_CAPACITY: 208.0,
        CONF_RADIUS: 28.5,
    },
    PROFILE_CYLINDRICAL_208: {
        CONF_CALCULATION_MODE: MODE_CYLINDRICAL,
        CONF_MAX_HEIGHT: 82.0,
        CONF_CAPACITY: 208.0,
        CONF_RADIUS: 28.5,
    },
}
PROFILES = [PROFILE_LINEAR_208, PROFILE_CYLINDRICAL_208, PROFILE_CUSTOM]

DEFAULT_NAME = "Barrel 208 L"
DEFAULT_PROFILE = PROFILE_LINEAR_208
DEFAULT_CALCULATION_MODE = MODE_LINEAR
DEFAULT_MAX_HEIGHT = 87.0  # cm
DEFAULT_CAPACITY = 208.0  # Liters
DEFAULT_RADIUS = 28.5  # cm
DEFAULT_MAX_HISTORY = 500  # Records, 0 = unlimited
DEFAULT_EXPORT_DIRECTORY = "barrel_calculator"

# Upper bounds for barrel dimensions
MAX_HEIGHT_LIMIT = 500.0  # cm
MAX_CAPACITY_LIMIT = 10000.0  # Liters
MAX_RADIUS_LIMIT = 500.0  # cm

# History and persistence
STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}_history"

# Export
EXPORT_FORMAT_CSV = "csv"
EXPORT_FORMAT_JSON = "json"
EXPORT_FORMATS = [EXPORT_FORMAT_CSV, EXPORT_FORMAT_JSON]
EXPORT_FILENAME_PREFIX = "barrel_calculations"
CSV_HEADER = ["Дата", "Высота (см)", "Объём (л)", "Заполнение (%)"]
CSV_DATETIME_FORMAT = "%d.%m.%Y %H:%M:%S"

# Number of recent records exposed as sensor attributes
HISTORY_ATTRIBUTE_RECORDS = 10

SERVICE_CALCULATE = "calculate"
SERVICE_CLEAR_HISTORY = "clear_history"
SERVICE_EXPORT_HISTORY = "export_history"

ATTR_HEIGHT = "height"
ATTR_ENTRY_ID = "entry_id"
ATTR_FORMAT = "format"
