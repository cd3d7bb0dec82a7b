from dataclasses import dataclass
import os

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    app_name: str
    database_url: str
    log_level: str
    input_dir: str
    job_name: str
    chunk_size: int
    writer_max_workers: int
    max_persist_retries: int
    retry_backoff_seconds: float
    schedule_hour_utc: int
    schedule_minute_utc: int


def get_settings() -> Settings:
    return Settings(
        app_name=os.getenv("APP_NAME", "billimport"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./billimport.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        input_dir=os.getenv("INPUT_DIR", "./data/input"),
        job_name=os.getenv("JOB_NAME", "importElectricityBillJob"),
        chunk_size=int(os.getenv("CHUNK_SIZE", "100")),
        # 0 lets the writer size its pool from the host.
        writer_max_workers=int(os.getenv("WRITER_MAX_WORKERS", "0")),
        max_persist_retries=int(os.getenv("MAX_PERSIST_RETRIES", "2")),
        retry_backoff_seconds=float(os.getenv("RETRY_BACKOFF_SECONDS", "0.1")),
        schedule_hour_utc=int(os.getenv("SCHEDULE_HOUR_UTC", "2")),
        schedule_minute_utc=int(os.getenv("SCHEDULE_MINUTE_UTC", "0")),
    )
