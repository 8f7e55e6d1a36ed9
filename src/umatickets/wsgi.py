"""WSGI config for the ticketing backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "umatickets.settings")

application = get_wsgi_application()
