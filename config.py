# config.py
import os
from dotenv import load_dotenv

# Load environment variables from the .env file
load_dotenv()

# --- DATABASE CONFIGURATION ---
DB_HOST = os.getenv("DATABASE_HOST")
DB_PORT = os.getenv("DATABASE_PORT")
DB_USER = os.getenv("DATABASE_USER")
DB_PASSWORD = os.getenv("DATABASE_PASSWORD")
DB_NAME = os.getenv("DATABASE_NAME")

# A full URL wins; otherwise fall back to the MySQL parts above.
# The format is: "mysql+pymysql://<user>:<password>@<host>:<port>/<dbname>"
DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# --- APPLICATION SETTINGS ---
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD").upper()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
