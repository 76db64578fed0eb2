"""
Dev-specific Django settings.
"""
# Inherit from base settings
from .base import *  # pylint:disable=W0614,W0401

LOGGING['loggers']['academy']['level'] = 'DEBUG'
LOGGING['loggers']['django.db.backends'] = {
    'handlers': ['console'],
    'level': 'INFO',
    'propagate': False,
}

# Store the dev database beside the checkout
DATABASES['default']['NAME'] = os.path.join(BASE_DIR, 'academy_dev.db')
