import os

from django.core.management.commands.runserver import Command as RunserverCommand


class Command(RunserverCommand):
    """
    runserver that listens on $PORT (4000 by default)
    """
    default_port = os.getenv('PORT', '4000')
