"""
Exceptions raised by the attachment_ftp app.
"""


class AttachmentFtpError(Exception):
    """
    Base class for attachment_ftp errors.
    """


class ConfigFileNotFoundError(AttachmentFtpError):
    """
    The per-environment FTP configuration file is missing or unreadable.
    """


class RequiredLibraryNotFoundError(AttachmentFtpError):
    """
    The FTP client library could not be imported.
    """
