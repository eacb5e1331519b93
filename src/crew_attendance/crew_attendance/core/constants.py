"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

LOCAL_TIMEZONE = "Europe/Rome"

# Shift timing
EARLY_CHECKIN_MINUTES = 4 * 60
NIGHT_BAND_END_MINUTES = 5 * 60
EVENING_SHIFT_START_MINUTES = 20 * 60
DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "17:00"
AUTO_CHECKOUT_AFTER_MINUTES = 60
AUTO_CHECKOUT_INTERVAL_SECONDS = 60
GPS_REFRESH_INTERVAL_SECONDS = 30
GPS_REFRESH_REQUIRED_ACCURACY_METERS = 50

# Breaks
DEFAULT_LUNCH_BREAK_MINUTES = 60
AUTO_LUNCH_BREAK_START = "13:00"
AUTO_LUNCH_BREAK_END = "14:00"
LATE_BREAK_PROMPT_HOURS = 8

# Location
DEFAULT_REQUIRED_ACCURACY_METERS = 10
DEFAULT_GPS_MAX_RETRIES = 3
DEFAULT_GPS_RETRY_DELAY_SECONDS = 2.0
GPS_FIRST_ATTEMPT_TIMEOUT_MS = 15000
GPS_RETRY_TIMEOUT_MS = 30000
CHECKIN_MAX_DISTANCE_METERS = 500
LOCATION_ALERT_DISTANCE_METERS = 1000

# Meals
DEFAULT_MEAL_VOUCHER_VALUE = 7.50
DEFAULT_COMPANY_MEAL_COST = 12.00

# Overtime / rectification
EXPECTED_SHIFT_MINUTES = 8 * 60
OVERTIME_STEP_MINUTES = 30
OVERTIME_NOTE_MIN_LENGTH = 10
RECTIFICATION_NOTE_MIN_LENGTH = 10

# Timesheets
DEFAULT_HOURLY_RATE = 25.0
DEFAULT_DAILY_RATE = 200.0
DEFAULT_RETENTION_PERCENTAGE = 15.0

# QR scanning
QR_SAME_CODE_COOLDOWN_SECONDS = 2.0
QR_MIN_SCAN_INTERVAL_SECONDS = 0.5

# Offline queue
OFFLINE_STORAGE_KEY = "crew_app_offline_data"

# Expenses
EXPENSE_CATEGORIES = ("vitto", "alloggio", "trasporto", "materiali", "comunicazioni", "altro")
EXPENSE_SUBMIT_WINDOW_HOURS = 48
