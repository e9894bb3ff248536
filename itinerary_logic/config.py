import os
import logging
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """
    Configuration class for Itinerary Logic.
    This class loads configuration values from environment variables or uses default values.
    """
    # General configuration
    DEBUG = os.environ.get('DEBUG', 'False') == 'True'

    # Scheduling defaults
    LOGIC_TIMEZONE = os.environ.get('LOGIC_TIMEZONE', 'Asia/Kolkata')
    DAY_START_TIME = os.environ.get('DAY_START_TIME', '09:00')
    TRANSITION_BUFFER_MIN = int(os.environ.get('TRANSITION_BUFFER_MIN', 10))

    # Routing service
    OSRM_BASE_URL = os.environ.get('OSRM_BASE_URL', 'https://router.project-osrm.org')
    OSRM_PROFILE = os.environ.get('OSRM_PROFILE', 'driving')
    OSRM_TIMEOUT_MS = int(os.environ.get('OSRM_TIMEOUT_MS', 4500))
    FALLBACK_SPEED_KMH = float(os.environ.get('FALLBACK_SPEED_KMH', 30))
    STATIC_DISTANCE_KM = float(os.environ.get('STATIC_DISTANCE_KM', 0))
    STATIC_TRAVEL_TIME_MIN = int(os.environ.get('STATIC_TRAVEL_TIME_MIN', 0))

    # Route cache
    ROUTE_CACHE_TTL_HOURS = float(os.environ.get('ROUTE_CACHE_TTL_HOURS', 168))
    ROUTE_CACHE_MAX_SIZE = int(os.environ.get('ROUTE_CACHE_MAX_SIZE', 2048))
    CACHE_PRECISION = int(os.environ.get('CACHE_PRECISION', 5))


# Keys used by the settings store of the back office
SETTING_DAY_START_TIME = 'day_start_time'
SETTING_TRANSITION_BUFFER = 'default_transition_buffer_min'
SETTING_TIMEZONE = 'logic_timezone'
SETTING_OSRM_BASE_URL = 'osrm_base_url'
SETTING_ROUTE_CACHE_TTL = 'route_cache_ttl_hours'


def _numeric_setting(settings, key, default):
    """Return a numeric setting, falling back to the default when it does not parse."""
    value = settings.get(key)
    if value is None:
        return default
    try:
        return type(default)(float(value))
    except (TypeError, ValueError):
        logging.warning(f"Setting '{key}' has non-numeric value {value!r}, using default {default}")
        return default


def _string_setting(settings, key, default):
    value = settings.get(key)
    if value is None or str(value).strip() == "":
        return default
    return str(value)


class ScheduleConfig:
    """
    Settings for one scheduling or routing call.

    Every argument left as None takes its value from Config, so a caller only
    has to pass what its settings store overrides.
    """

    def __init__(self, day_start_time=None, transition_buffer_min=None, timezone=None,
                 osrm_base_url=None, osrm_profile=None, osrm_timeout_ms=None,
                 fallback_speed_kmh=None, static_distance_km=None, static_travel_time_min=None):
        self.day_start_time = day_start_time or Config.DAY_START_TIME
        self.transition_buffer_min = max(0, int(
            Config.TRANSITION_BUFFER_MIN if transition_buffer_min is None else transition_buffer_min
        ))
        self.timezone = timezone or Config.LOGIC_TIMEZONE
        self.osrm_base_url = (osrm_base_url or Config.OSRM_BASE_URL).rstrip('/')
        self.osrm_profile = osrm_profile or Config.OSRM_PROFILE
        self.osrm_timeout_ms = Config.OSRM_TIMEOUT_MS if osrm_timeout_ms is None else int(osrm_timeout_ms)
        self.fallback_speed_kmh = float(
            Config.FALLBACK_SPEED_KMH if fallback_speed_kmh is None else fallback_speed_kmh
        )
        if self.fallback_speed_kmh <= 0:
            raise ValueError("fallback_speed_kmh must be positive")
        self.static_distance_km = float(
            Config.STATIC_DISTANCE_KM if static_distance_km is None else static_distance_km
        )
        self.static_travel_time_min = int(
            Config.STATIC_TRAVEL_TIME_MIN if static_travel_time_min is None else static_travel_time_min
        )

    @property
    def osrm_timeout_seconds(self) -> float:
        return self.osrm_timeout_ms / 1000

    @classmethod
    def from_settings(cls, settings=None, **overrides):
        """
        Build a config from a settings-store mapping.

        Precedence: explicit overrides, then stored settings, then the
        hard-coded defaults in Config.
        """
        settings = settings or {}
        values = {
            "day_start_time": _string_setting(settings, SETTING_DAY_START_TIME, Config.DAY_START_TIME),
            "transition_buffer_min": _numeric_setting(settings, SETTING_TRANSITION_BUFFER, Config.TRANSITION_BUFFER_MIN),
            "timezone": _string_setting(settings, SETTING_TIMEZONE, Config.LOGIC_TIMEZONE),
            "osrm_base_url": _string_setting(settings, SETTING_OSRM_BASE_URL, Config.OSRM_BASE_URL),
        }
        for key, value in overrides.items():
            if value is not None:
                values[key] = value
        return cls(**values)

    def to_dict(self):
        return {
            "dayStartTime": self.day_start_time,
            "transitionBufferMin": self.transition_buffer_min,
            "timeZone": self.timezone,
            "osrmBaseUrl": self.osrm_base_url,
            "osrmProfile": self.osrm_profile,
            "osrmTimeoutMs": self.osrm_timeout_ms,
            "fallbackSpeedKmH": self.fallback_speed_kmh,
        }

    def __repr__(self):
        return (f"ScheduleConfig({self.day_start_time}, buffer={self.transition_buffer_min}, "
                f"tz={self.timezone}, osrm={self.osrm_base_url})")


def route_cache_ttl_seconds(settings=None):
    """TTL for cached routes in seconds, from the settings store or Config."""
    hours = _numeric_setting(settings or {}, SETTING_ROUTE_CACHE_TTL, Config.ROUTE_CACHE_TTL_HOURS)
    return max(1.0, float(hours)) * 3600
