from .base import REST_FRAMEWORK as BASE_REST_FRAMEWORK
from .base import *  # noqa

# Test settings: force SQLite for reliability and speed in CI/pytest
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",  # noqa: F405
    }
}

# Capture outbound mail in django.core.mail.outbox
EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
ADMIN_NOTIFICATION_EMAIL = "admin@printworks.test"

# Keep design blobs in memory; nothing touches disk during tests
MEDIA_URL = "https://blob.printworks.test/"
STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.InMemoryStorage",
    },
    "staticfiles": {
        "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
    },
}
# InMemoryStorage directory nodes are not safe to create from several threads
DESIGN_UPLOAD_WORKERS = 1

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

RAZORPAY_KEY_SECRET = "test-razorpay-secret"
CRON_SECRET = "test-cron-secret"

# Slightly relax throttling for tests to reduce flakiness
REST_FRAMEWORK = {**BASE_REST_FRAMEWORK}
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {
    **BASE_REST_FRAMEWORK.get("DEFAULT_THROTTLE_RATES", {}),
    "user": "10000/min",
    "anon": "10000/min",
    "cart": "1000/min",
    "cart_write": "1000/min",
    "orders": "1000/min",
    "orders_write": "1000/min",
    "promo": "1000/min",
    "cron": "1000/min",
}
