"""
WSGI config for the sales management backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'salesmgmt.config.settings')

application = get_wsgi_application()
