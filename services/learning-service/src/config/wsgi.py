# services/learning-service/src/config/wsgi.py
"""WSGI entry point for Learning Service."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

application = get_wsgi_application()
