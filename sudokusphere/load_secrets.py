import os
from dotenv import load_dotenv

load_dotenv()

user = os.getenv("DB_USER", "postgres")
password = os.getenv("DB_PASSWORD", "password")
host = os.getenv("DB_HOST", "localhost")
port = os.getenv("DB_PORT", "5432")
db_name = os.getenv("DB_NAME", "sudoku_db")
database_url = os.getenv(
    "DATABASE_URL", f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db_name}"
)

redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

session_expiration_hours = int(os.getenv("SESSION_EXPIRATION_HOURS", "24"))
cleanup_interval_minutes = int(os.getenv("CLEANUP_INTERVAL_MINUTES", "60"))

# General requests: 100 per 15 minutes. Game actions: 30 per minute.
rate_limit_window_ms = int(os.getenv("RATE_LIMIT_WINDOW_MS", "900000"))
rate_limit_max_requests = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
game_action_window_ms = int(os.getenv("GAME_ACTION_WINDOW_MS", "60000"))
game_action_max_requests = int(os.getenv("GAME_ACTION_MAX_REQUESTS", "30"))

log_level = os.getenv("LOG_LEVEL", "INFO").upper()

if __name__ == "__main__":
    print(database_url, redis_url, session_expiration_hours, log_level)
