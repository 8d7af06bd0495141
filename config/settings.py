import os
from pathlib import Path
from dotenv import load_dotenv
import dj_database_url


BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / ".env")


SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
DEBUG = os.getenv("DEBUG", "true").lower() == "true"
ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "*").split(",")


INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "channels",
    "corsheaders",
    # Local apps
    "apps.common",
    "apps.accounts",
    "apps.jobs",
    "apps.mains",
    "apps.prelims",
]


MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]


ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]


WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"


_database_url = os.getenv("DATABASE_URL")
if _database_url:
    # Prefer DATABASE_URL (e.g., Supabase). Enforce SSL and reuse connections.
    DATABASES = {
        "default": dj_database_url.parse(_database_url, conn_max_age=600, ssl_require=True)
    }
    # Managed poolers (PgBouncer) run out of slots with persistent connections.
    try:
        DATABASES["default"]["CONN_MAX_AGE"] = int(os.getenv("CONN_MAX_AGE", "0"))
    except ValueError:
        DATABASES["default"]["CONN_MAX_AGE"] = 0
    DATABASES["default"]["DISABLE_SERVER_SIDE_CURSORS"] = True
elif DEBUG:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }
else:
    # In production we require DATABASE_URL; fail fast to avoid silent SQLite fallback
    raise RuntimeError("DATABASE_URL must be set in production")


LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "UTC")
USE_I18N = True
USE_TZ = True


STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", BASE_DIR / "media"))

# Uploaded answer sheets live under <MEDIA_ROOT>/<UPLOADS_PREFIX>/<user_id>/
UPLOADS_PREFIX = os.getenv("UPLOADS_PREFIX", "answer-uploads")

# Upload limits and formats
MAX_UPLOAD_SIZE_MB = float(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
MAX_EVALUATION_FILE_MB = float(os.getenv("MAX_EVALUATION_FILE_MB", "10"))
SUPPORTED_UPLOAD_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif", "application/pdf"]


REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
        "rest_framework.parsers.MultiPartParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.BasicAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "EXCEPTION_HANDLER": "apps.common.exceptions.api_exception_handler",
}


# Channels – use Redis in production if CHANNEL_REDIS_URL is provided; fallback to in-memory for dev
_channel_redis_url = os.getenv("CHANNEL_REDIS_URL")
if _channel_redis_url:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels_redis.core.RedisChannelLayer",
            "CONFIG": {"hosts": [_channel_redis_url]},
        }
    }
else:
    CHANNEL_LAYERS = {
        "default": {
            "BACKEND": "channels.layers.InMemoryChannelLayer",
        }
    }


# Shared cache; only the "cache" rate limit backend depends on it being shared.
_cache_redis_url = os.getenv("CACHE_REDIS_URL")
if _cache_redis_url:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": _cache_redis_url,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        }
    }


DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# CORS
CORS_ALLOW_ALL_ORIGINS = True
CORS_ALLOW_CREDENTIALS = True
CORS_EXPOSE_HEADERS = ["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"]

# CSRF Trusted Origins
CSRF_TRUSTED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# AI API keys
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL_NAME = os.getenv("GEMINI_MODEL_NAME", "gemini-2.5-flash-lite")
GEMINI_EXPLAIN_MODEL_NAME = os.getenv("GEMINI_EXPLAIN_MODEL_NAME", "gemini-2.5-pro")
# Upper bound for a single model call; vision evaluation normally takes 10-30s
GEMINI_TIMEOUT_SECONDS = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "120"))


# Evaluation dispatch
# "queue": persist a Job row consumed by `manage.py run_job_worker` (durable)
# "thread": hand off to an in-process thread pool (single instance dev setups)
EVALUATION_DISPATCH_MODE = os.getenv("EVALUATION_DISPATCH_MODE", "queue")
EVALUATION_THREAD_WORKERS = int(os.getenv("EVALUATION_THREAD_WORKERS", "4"))


# Rate limiting
# "memory" counts per process and is NOT shared between instances; use "cache"
# with CACHE_REDIS_URL when running more than one server process.
RATE_LIMIT_BACKEND = os.getenv("RATE_LIMIT_BACKEND", "memory")
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))
RATE_LIMITS = {
    "generate_questions": {"window_seconds": RATE_LIMIT_WINDOW_SECONDS, "max_requests": 20},
    "evaluate_answer": {"window_seconds": RATE_LIMIT_WINDOW_SECONDS, "max_requests": 10},
    "explain_answer": {"window_seconds": RATE_LIMIT_WINDOW_SECONDS, "max_requests": 50},
    "upload": {"window_seconds": RATE_LIMIT_WINDOW_SECONDS, "max_requests": 30},
    "default": {"window_seconds": RATE_LIMIT_WINDOW_SECONDS, "max_requests": 100},
}


# Logging
LOG_DIR = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
os.makedirs(LOG_DIR, exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s [%(levelname)s] %(name)s %(message)s",
        }
    },
    "handlers": {
        "evaluation_file": {
            "class": "logging.FileHandler",
            "level": "DEBUG",
            "filename": str(LOG_DIR / "evaluation.log"),
            "formatter": "verbose",
            "encoding": "utf-8",
        },
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "evaluation": {
            "handlers": ["evaluation_file", "console"],
            "level": "DEBUG",
            "propagate": False,
        },
        "audit": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": os.getenv("APP_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
