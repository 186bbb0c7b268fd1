"""
Pytest fixtures for attachment_ftp tests.
"""
import os
import sys
from pathlib import Path

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "attachment_ftp.tests.settings")

project_root = Path(__file__).resolve().parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import django
django.setup()

from unittest.mock import patch

import pytest

from attachment_ftp.conf import FtpConfig, clear_config_cache


@pytest.fixture(autouse=True)
def reset_config_cache():
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture(autouse=True)
def tempfile_dir(settings, tmp_path):
    path = tmp_path / "attachment_tmp"
    path.mkdir()
    settings.ATTACHMENT_FTP_TEMPFILE_PATH = str(path)
    return path


@pytest.fixture
def ftp_cls():
    with patch("attachment_ftp.services.ftp_client.FTP") as cls:
        yield cls


@pytest.fixture
def mock_ftp(ftp_cls):
    return ftp_cls.return_value


@pytest.fixture
def ftp_config():
    return FtpConfig(
        server="ftp.example.com",
        login="uploader",
        password="secret123",
        base_upload_path="/uploads",
        base_url="http://files.example.com/uploads",
    )


@pytest.fixture
def read_only_config(ftp_config):
    return FtpConfig(**{**ftp_config.as_dict(), "read_only": True})
