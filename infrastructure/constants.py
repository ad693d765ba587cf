"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for defaults used across the booking engine
SCOPE: Billing, expiry, scheduling and display values
"""

# Display timezone (India Standard Time, UTC+5:30)
DISPLAY_TIMEZONE = 'Asia/Kolkata'
DISPLAY_DATETIME_FORMAT = '%d/%m/%Y, %I:%M:%S %p'
DISPLAY_TIME_FORMAT = '%I:%M:%S %p'

# Billing
DEFAULT_MINIMUM_BILLING_MINUTES = 15
MINUTES_PER_HOUR = 60

# Booking lifecycle
DEFAULT_EXPIRY_WINDOW_MINUTES = 60
DEFAULT_EXPIRY_WARNING_MINUTES = 15  # "expiring soon" threshold before auto-cancel
DEFAULT_PROVISIONAL_END_HOURS = 24   # placeholder end_time until exit detection

# Reclamation scheduler
DEFAULT_RECLAMATION_INTERVAL_SECONDS = 5 * 60
METRICS_LOG_INTERVAL_SECONDS = 5 * 60

# Input validation
TIME_OF_DAY_PATTERN = r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$'
MAX_VEHICLE_NUMBER_LENGTH = 20

# Persistence
DEFAULT_DATA_DIRECTORY = 'data'
DEFAULT_BOOKINGS_FILE = 'data/bookings.json'
DEFAULT_SLOTS_FILE = 'data/slots.json'
DEFAULT_LOG_DIRECTORY = 'logs/latest_log'

# Slot states as reported by the inventory
SLOT_AVAILABLE = 'Available'
SLOT_OCCUPIED = 'Occupied'
