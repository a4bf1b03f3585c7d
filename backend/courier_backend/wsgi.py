"""
WSGI config for the courier back office.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "courier_backend.settings")

application = get_wsgi_application()
