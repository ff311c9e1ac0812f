"""Constants for Schlüter thermostat integration.

This module contains all the constants used throughout the integration,
including API endpoints, configuration keys, limits and vendor field names.
"""

DOMAIN = "schluter_thermostat"
MANUFACTURER = "Schlüter-Systems"

READ_BASE_URL = "https://owd5-mh015-app.ojelectronics.com"
WRITE_BASE_URL = "https://ocd5.azurewebsites.net"
REQUEST_TIMEOUT = 20.0

CONF_CUSTOMER_ID = "customer_id"

DEFAULT_POLL_INTERVAL = 60
MIN_POLL_INTERVAL = 10
MAX_POLL_INTERVAL = 3600
FIXED_POLL_HOURS = (0, 12)
DEFAULT_FAILURE_THRESHOLD = 3
SHUTDOWN_GRACE_PERIOD = 5.0

# Extra shift applied to outgoing comfort/boost end times, on top of the
# thermostat's own UTC offset. Some firmware revisions appeared to expect one
# more hour; the vendor contract is unclear, so it stays zero unless changed.
END_TIME_CORRECTION_SECONDS = 0

ERROR_INVALID_AUTH = "invalid_auth"
ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_UNKNOWN = "unknown_error"

# Apply limits, all inclusive
MIN_SETPOINT = 12.0
MAX_SETPOINT = 35.0
MIN_VACATION_TEMPERATURE = 5.0
MAX_VACATION_TEMPERATURE = 35.0
MIN_DURATION = 1
MAX_DURATION = 24 * 60

DEFAULT_COMFORT_SETPOINT = 22.0
DEFAULT_COMFORT_DURATION = 180
DEFAULT_MANUAL_SETPOINT = 21.0
DEFAULT_BOOST_DURATION = 60
DEFAULT_VACATION_TEMPERATURE = 12.0

# Staged value keys
STAGED_COMFORT_SETPOINT = "comfort_setpoint"
STAGED_COMFORT_DURATION = "comfort_duration"
STAGED_MANUAL_SETPOINT = "manual_setpoint"
STAGED_BOOST_DURATION = "boost_duration"
STAGED_NAME = "name"
STAGED_VACATION_ENABLED = "vacation_enabled"
STAGED_VACATION_BEGIN = "vacation_begin"
STAGED_VACATION_END = "vacation_end"
STAGED_VACATION_TEMPERATURE = "vacation_temperature"

# Vendor fields used on UpdateThermostat
FIELD_SERIAL_NUMBER = "SerialNumber"
FIELD_THERMOSTAT_NAME = "ThermostatName"
FIELD_REGULATION_MODE = "RegulationMode"
FIELD_COMFORT_SETPOINT = "ComfortSetpoint"
FIELD_COMFORT_END_TIME = "ComfortEndTime"
FIELD_MANUAL_SETPOINT = "ManualModeSetpoint"
FIELD_BOOST_END_TIME = "BoostEndTime"
FIELD_VACATION_ENABLED = "VacationEnabled"
FIELD_VACATION_BEGIN = "VacationBeginDay"
FIELD_VACATION_END = "VacationEndDay"
FIELD_VACATION_TEMPERATURE = "VacationTemperature"
