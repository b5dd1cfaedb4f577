import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()  # Load .env file if present

BASE_DIR = Path(__file__).resolve().parents[2]
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "false").lower() in {"1", "true", "yes"}
raw_hosts = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1")
ALLOWED_HOSTS = [h.strip() for h in raw_hosts.split(",") if h.strip()]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

INSTALLED_APPS = [
    # Django Admin Deps
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Our apps
    "marketplace.apps.users.apps.UsersConfig",
    "marketplace.apps.tokens.apps.TokensConfig",
    "marketplace.apps.pool.apps.PoolConfig",
    "marketplace.apps.ledger.apps.LedgerConfig",
    "marketplace.apps.market.apps.MarketConfig",
    "whitenoise.runserver_nostatic",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "marketplace.urls"
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ]
        },
    }
]
WSGI_APPLICATION = "marketplace.wsgi.application"

# Postgres by default; override with docker/dev settings as needed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "HOST": os.getenv("DB_HOST", "localhost"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "NAME": os.getenv("DB_NAME", "market_db"),
        "USER": os.getenv("DB_USER", "market_user"),
        "PASSWORD": os.getenv("DB_PASSWORD", "market_password"),
    }
}

DATABASE_URL = os.getenv("DATABASE_URL")
if DATABASE_URL:
    from urllib.parse import urlparse

    parsed = urlparse(DATABASE_URL)
    DATABASES["default"].update(
        {
            "NAME": parsed.path.lstrip("/"),
            "USER": parsed.username,
            "PASSWORD": parsed.password,
            "HOST": parsed.hostname,
            "PORT": parsed.port or "5432",
            "OPTIONS": {"sslmode": os.getenv("DB_SSLMODE", "require")},
        }
    )

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "marketplace": {"handlers": ["console"], "level": LOG_LEVEL},
    },
}

# Celery configuration
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
# The settlement queue must be consumed by a single worker with concurrency 1.
CELERY_TASK_DEFAULT_QUEUE = os.getenv("CELERY_TASK_DEFAULT_QUEUE", "settlement")
CELERY_TASK_ACKS_LATE = True
# No global hard time limit: killing a purchase between the payment and the
# commit would skip the refund. Slow RPC calls are bounded by RECEIPT_TIMEOUT.
CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True
CELERY_BEAT_SCHEDULE = {
    "snapshot-pools-hourly": {
        "task": "marketplace.apps.pool.tasks.snapshot_pools",
        "schedule": 60 * 60,
    },
}

# Redis TTL for purchase settlement status entries (seconds)
SETTLEMENT_STATUS_TTL = int(os.getenv("SETTLEMENT_STATUS_TTL", str(30 * 60)))

# ==============================================================================
# Web3 / Blockchain Configuration
# ==============================================================================

# For local Hardhat: http://127.0.0.1:8545
WEB3_PROVIDER_URL = os.getenv("WEB3_PROVIDER_URL", "http://127.0.0.1:8545")

# Marketplace operator wallet (custodies WETH, holds NFT transfer approvals)
OPERATOR_ADDRESS = os.getenv(
    "OPERATOR_ADDRESS", "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
)
OPERATOR_PRIVATE_KEY = os.getenv(
    "OPERATOR_PRIVATE_KEY",
    "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80",
)

# Contract Addresses
WETH_ADDRESS = os.getenv("WETH_ADDRESS", "")
SWAP_ROUTER_ADDRESS = os.getenv("SWAP_ROUTER_ADDRESS", "")

# Max extra payment token pulled over the router quote, in basis points
PAYMENT_SLIPPAGE_BPS = int(os.getenv("PAYMENT_SLIPPAGE_BPS", "50"))
PAYMENT_SWAP_DEADLINE_SECONDS = int(os.getenv("PAYMENT_SWAP_DEADLINE_SECONDS", "300"))

# ABI Paths
ABI_DIR = BASE_DIR / "marketplace" / "onchain" / "abi"
ERC20_ABI_PATH = ABI_DIR / "ERC20.json"
WETH_ABI_PATH = ABI_DIR / "WETH9.json"
ERC721_ABI_PATH = ABI_DIR / "ERC721.json"
SWAP_ROUTER_ABI_PATH = ABI_DIR / "UniswapV2Router02.json"
