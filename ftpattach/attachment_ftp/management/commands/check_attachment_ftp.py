"""
Show the effective FTP attachment config and optionally test a login.

Useful after deploy to confirm the environment section and credentials
before the first upload happens.
"""
import ftplib
import logging

from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError

from attachment_ftp.conf import get_config_path, get_environment, load_ftp_config
from attachment_ftp.exceptions import ConfigFileNotFoundError
from attachment_ftp.services.ftp_client import ftp_session
from attachment_ftp.utils.logging import masked_ftp_config

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Load the FTP attachment config for the current environment, print "
        "it with secrets masked, and optionally log in to the server."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--config-path",
            default=None,
            help="YAML config file (default: ATTACHMENT_FTP_CONFIG_PATH)",
        )
        parser.add_argument(
            "--environment",
            default=None,
            help="Config section to use (default: ATTACHMENT_FTP_ENV)",
        )
        parser.add_argument(
            "--connect",
            action="store_true",
            help="Open an FTP session with the loaded credentials",
        )

    def handle(self, *args, **options):
        path = options["config_path"] or get_config_path()
        environment = options["environment"] or get_environment()

        try:
            config = load_ftp_config(path, environment)
        except (ConfigFileNotFoundError, ImproperlyConfigured) as e:
            raise CommandError(str(e)) from e

        self.stdout.write(f"Config: {path} [{environment}]")
        for key, value in masked_ftp_config(config).items():
            self.stdout.write(f"  {key}: {value}")

        if not options["connect"]:
            return

        try:
            with ftp_session(config) as ftp:
                cwd = ftp.pwd()
        except ftplib.all_errors as e:
            logger.error(f"FTP login to {config.server} failed: {e}")
            raise CommandError(f"FTP login to {config.server} failed: {e}") from e

        self.stdout.write(
            self.style.SUCCESS(f"Logged in to {config.server} (cwd: {cwd})")
        )
