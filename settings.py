import os
from core.log import logger

if os.environ.get("ENVIRONTMENT") != "os":
    logger.info("load env from file")
    from dotenv import load_dotenv

    load_dotenv()
else:
    logger.info("load env from os")


def str_to_bool(string: str) -> bool:
    if string in ["true", "TRUE", "True"]:
        return True
    elif string in ["false", "FALSE", "False"]:
        return False
    else:
        raise Exception(
            f"{string} is not boolean, ex input true -> true, True, TRUE, ex input false -> false, False, FALSE"
        )


# Environtment
ENVIRONTMENT = os.environ.get("ENVIRONTMENT")

# Deployment mode
DEPLOYMENT_MODE = os.environ.get("DEPLOYMENT_MODE", "development")

# JWT conf
JWT_PREFIX = os.environ.get("JWT_PREFIX", "Bearer")
SECRET_KEY = os.environ.get("SECRET_KEY", "ticket_resale_secret")
ALGORITHM = os.environ.get("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(
    os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
)

# Timezone, every persisted instant is UTC; TZ is used for display only
TZ = os.environ.get("TZ", "Asia/Kolkata")

# Database conf
POSTGRES_USER = os.environ.get("POSTGRES_USER")
POSTGRES_PASSWORD = os.environ.get("POSTGRES_PASSWORD")
POSTGRES_HOST = os.environ.get("POSTGRES_HOST")
POSTGRES_PORT = os.environ.get("POSTGRES_PORT", "5432")
POSTGRES_DATABASE = os.environ.get("POSTGRES_DATABASE")

DATABASE_URL = os.environ.get("DATABASE_URL")
if DATABASE_URL is None:
    if POSTGRES_HOST:
        DATABASE_URL = f"postgresql+psycopg://{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DATABASE}"
    else:
        DATABASE_URL = "sqlite:///./ticket_resale.db"

FRONTEND_BASE_URL = os.environ.get("FRONTEND_BASE_URL", "http://localhost:3000")

# MAIL conf
MAIL_ENABLED = str_to_bool(os.environ.get("MAIL_ENABLED", "False"))
MAIL_USERNAME = os.environ.get("MAIL_USERNAME", "")
MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD", "")
MAIL_FROM = os.environ.get("MAIL_FROM", "noreply@example.com")
MAIL_PORT = int(os.environ.get("MAIL_PORT", "465"))
MAIL_SERVER = os.environ.get("MAIL_SERVER", "")
MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "LayLow-India")
MAIL_TLS = str_to_bool(os.environ.get("MAIL_TLS", "False"))
MAIL_SSL = str_to_bool(os.environ.get("MAIL_SSL", "True"))
USE_CREDENTIALS = str_to_bool(os.environ.get("USE_CREDENTIALS", "True"))

EMAIL_VERIFICATION_EXPIRE_HOURS = int(
    os.environ.get("EMAIL_VERIFICATION_EXPIRE_HOURS", "24")
)
RESET_PASSWORD_EXPIRE_HOURS = int(os.environ.get("RESET_PASSWORD_EXPIRE_HOURS", "1"))

# Simulated payment processor
PAYMENT_SUCCESS_RATE = float(os.environ.get("PAYMENT_SUCCESS_RATE", "0.9"))
PAYMENT_PROCESSING_DELAY = float(os.environ.get("PAYMENT_PROCESSING_DELAY", "0"))

# Auction rules, amounts in minor units (paise)
MIN_BID_INCREMENT_PERCENT = int(os.environ.get("MIN_BID_INCREMENT_PERCENT", "10"))
MIN_BID_AMOUNT = int(os.environ.get("MIN_BID_AMOUNT", "100"))

# Expired auction sweep, crontab in UTC
AUCTION_SWEEP_ENABLED = str_to_bool(os.environ.get("AUCTION_SWEEP_ENABLED", "True"))
AUCTION_SWEEP_CRON = os.environ.get("AUCTION_SWEEP_CRON", "0 * * * *")

# Rate limit conf
RATE_LIMIT_ENABLED = str_to_bool(os.environ.get("RATE_LIMIT_ENABLED", "False"))
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "100"))
RATE_LIMIT_WINDOW = int(os.environ.get("RATE_LIMIT_WINDOW", "900"))
RATE_LIMIT_EXCLUDED_PATHS = [
    path.strip()
    for path in os.environ.get("RATE_LIMIT_EXCLUDED_PATHS", "/health,/docs").split(",")
    if path.strip()
]
