"""
Helpers for logging FTP settings without leaking credentials.
"""

SECRET_FIELDS = ("password",)


def mask_secret(value):
    """
    Keep the first 4 characters of a long secret and hide short ones
    entirely. Empty values are returned unchanged.
    """
    if not value:
        return value
    text = str(value)
    if len(text) > 4:
        return f"{text[:4]}***"
    return "***"


def masked_ftp_config(config):
    """
    Return an FtpConfig as a dict with its credentials masked, ready for
    log lines and command output.

    Example:
        masked_ftp_config(config)["password"]  # 'secr***'
    """
    values = config.as_dict()
    for field in SECRET_FIELDS:
        values[field] = mask_secret(values.get(field))
    return values
