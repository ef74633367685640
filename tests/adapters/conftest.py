import django
from django.conf import settings

if not settings.configured:
    settings.configure(
        SECRET_KEY="django_tests_secret_key",
        CACHES={
            "default": {
                "BACKEND": "lapse.adapters.django.Cache",
                "TIMEOUT": 60,
                "OPTIONS": {"SWEEP_INTERVAL": 1},
            },
        },
        INSTALLED_APPS=[],
        USE_TZ=False,
    )
    django.setup()
