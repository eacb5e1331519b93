import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "crew_attendance_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOCAL_TIMEZONE = "Europe/Rome"
OFFLINE_STORAGE_PATH = os.getenv("OFFLINE_STORAGE_PATH", "instance/offline_queue_test.json")
GEOCODER_URL = "https://nominatim.openstreetmap.org/reverse"
GEOCODER_USER_AGENT = "CrewManager-Mobile/1.0"

AUTO_CHECKOUT_ENABLED = False
AUTO_CHECKOUT_INTERVAL_SECONDS = 60
