import os
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name, default):
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///talentpool.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    RQ_QUEUE = os.getenv("RQ_QUEUE", "talent-pool")
    # when false, jobs run inline in the calling process
    RQ_ASYNC = _env_bool("RQ_ASYNC", True)

    # external scoring worker
    DISPATCH_WEBHOOK_URL = os.getenv("DISPATCH_WEBHOOK_URL")
    DISPATCH_TIMEOUT = float(os.getenv("DISPATCH_TIMEOUT", "120"))
    DISPATCH_CHUNK_SIZE = int(os.getenv("DISPATCH_CHUNK_SIZE", "10"))
    CALLBACK_TOKEN = os.getenv("CALLBACK_TOKEN")
    CALLBACK_REPLAY_POLICY = os.getenv("CALLBACK_REPLAY_POLICY", "ignore")  # ignore/error
    PROCESSING_DEADLINE_SECONDS = int(os.getenv("PROCESSING_DEADLINE_SECONDS", "3600"))

    ACCEPTANCE_THRESHOLD = int(os.getenv("ACCEPTANCE_THRESHOLD", "65"))
    MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", "50"))
    MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024)))

    SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "noreply@example.com")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Talent Pool")

    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "local")
    LOCAL_STORAGE_DIR = os.getenv("LOCAL_STORAGE_DIR", "./storage")
    PUBLIC_FILE_BASE_URL = os.getenv("PUBLIC_FILE_BASE_URL")
    S3_ENDPOINT = os.getenv("S3_ENDPOINT")
    S3_REGION = os.getenv("S3_REGION")
    S3_BUCKET = os.getenv("S3_BUCKET")
    S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY")
    S3_SECRET_KEY = os.getenv("S3_SECRET_KEY")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    RQ_ASYNC = False
    WTF_CSRF_ENABLED = False
    DISPATCH_WEBHOOK_URL = "http://worker.test/webhook/talent-pool"
    DISPATCH_TIMEOUT = 5
    CALLBACK_TOKEN = None
    SENDGRID_API_KEY = None
