"""
App configuration for attachment_ftp.
"""
import importlib
import logging

from django.apps import AppConfig, apps

from .exceptions import RequiredLibraryNotFoundError

logger = logging.getLogger(__name__)

FTP_CLIENT_MODULE = "ftplib"


class AttachmentFtpConfig(AppConfig):
    """
    Configuration for attachment_ftp app.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "attachment_ftp"
    verbose_name = "Attachment FTP Storage"

    def ready(self):
        """
        Register signal handlers and fail fast on missing configuration.
        """
        try:
            importlib.import_module(FTP_CLIENT_MODULE)
        except ImportError as exc:
            raise RequiredLibraryNotFoundError(
                f"{FTP_CLIENT_MODULE} could not be loaded"
            ) from exc

        # Imported for signal registration
        import attachment_ftp.signals  # noqa: F401

        from .conf import validate_on_startup

        if validate_on_startup():
            self.validate_attachment_configs()

    def validate_attachment_configs(self):
        """
        Load the FTP config of every concrete attachment model. Raises
        ConfigFileNotFoundError or ImproperlyConfigured on bad config.
        """
        from .conf import get_ftp_config
        from .models import FtpAttachment

        for model in apps.get_models():
            if not issubclass(model, FtpAttachment):
                continue
            config = get_ftp_config(model.attachment_options.config_path)
            logger.debug(
                f"FTP storage for {model._meta.label}: {config.server}"
                f"{' (read-only)' if config.read_only else ''}"
            )
