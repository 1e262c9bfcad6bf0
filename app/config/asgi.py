"""
ASGI config for the escrow settlement service.

This file exposes the ASGI callable as a module-level variable named
`application`. Uvicorn uses it to serve the Django application.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_asgi_application()
