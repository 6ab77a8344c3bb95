import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_payroll"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# School settings in the database override include_sundays.
PAYROLL = {
    "timezone": os.getenv("PAYROLL_TIMEZONE", "Asia/Riyadh"),
    "include_sundays": bool(int(os.getenv("INCLUDE_SUNDAYS", "0"))),
    "default_absence_amount": os.getenv("DEFAULT_ABSENCE_AMOUNT", "25"),
    "default_lateness_amount": os.getenv("DEFAULT_LATENESS_AMOUNT", "30"),
}
