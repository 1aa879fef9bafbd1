import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/cafe_pos")
DB_CONNECTION_NAME = os.getenv("DB_CONNECTION_NAME", "default")

# Application Metadata
PROJECT_NAME = "Cafe POS Back Office"
VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Warehouse status thresholds, as a percentage of nominal stock
STOCK_LOW_PERCENT = int(os.getenv("STOCK_LOW_PERCENT", 50))
STOCK_CRITICAL_PERCENT = int(os.getenv("STOCK_CRITICAL_PERCENT", 30))

LOGS_PAGE_LIMIT = int(os.getenv("LOGS_PAGE_LIMIT", 100)) # Default page size for the audit log listing

# Time zone attached to naive datetimes and used for day boundaries (reports, shift lists)
TIMEZONE = os.getenv("TIMEZONE", "UTC")
