"""
Unit tests for FTP session scoping and directory creation.
"""
import ftplib
import io
from unittest.mock import call

import pytest

from attachment_ftp.conf import FtpConfig
from attachment_ftp.services.ftp_client import download, ftp_session, makedirs, upload


@pytest.mark.unit
class TestFtpSession:
    def test_opens_logs_in_and_quits(self, ftp_cls, mock_ftp, ftp_config):
        with ftp_session(ftp_config) as ftp:
            assert ftp is mock_ftp

        ftp_cls.assert_called_once_with()
        mock_ftp.connect.assert_called_once_with("ftp.example.com", 21)
        mock_ftp.login.assert_called_once_with("uploader", "secret123")
        mock_ftp.set_pasv.assert_called_once_with(True)
        mock_ftp.quit.assert_called_once_with()

    def test_passes_timeout_when_configured(self, ftp_cls, ftp_config):
        config = FtpConfig(**{**ftp_config.as_dict(), "timeout": 5.0})
        with ftp_session(config):
            pass
        ftp_cls.assert_called_once_with(timeout=5.0)

    def test_quits_when_body_raises(self, mock_ftp, ftp_config):
        with pytest.raises(ftplib.error_perm):
            with ftp_session(ftp_config):
                raise ftplib.error_perm("550 Permission denied")
        mock_ftp.quit.assert_called_once_with()

    def test_closes_when_quit_fails(self, mock_ftp, ftp_config):
        mock_ftp.quit.side_effect = EOFError()
        with ftp_session(ftp_config):
            pass
        mock_ftp.close.assert_called_once_with()

    def test_connect_failure_propagates(self, mock_ftp, ftp_config):
        mock_ftp.sock = None
        mock_ftp.connect.side_effect = OSError("Connection refused")
        with pytest.raises(OSError):
            with ftp_session(ftp_config):
                pass
        mock_ftp.login.assert_not_called()
        mock_ftp.quit.assert_not_called()


@pytest.mark.unit
class TestMakedirs:
    def test_creates_every_prefix(self, mock_ftp):
        makedirs(mock_ftp, "/uploads/photos/0000")
        assert mock_ftp.mkd.call_args_list == [
            call("/uploads"),
            call("/uploads/photos"),
            call("/uploads/photos/0000"),
        ]

    def test_relative_path(self, mock_ftp):
        makedirs(mock_ftp, "photos/0000/")
        assert mock_ftp.mkd.call_args_list == [call("photos"), call("photos/0000")]

    def test_ignores_existing_directories(self, mock_ftp):
        mock_ftp.mkd.side_effect = ftplib.error_perm("550 File exists")
        makedirs(mock_ftp, "/uploads/photos")
        assert mock_ftp.mkd.call_count == 2


@pytest.mark.unit
class TestTransfers:
    def test_download_writes_retrieved_blocks(self, mock_ftp):
        def retrbinary(cmd, callback):
            callback(b"hello ")
            callback(b"world")

        mock_ftp.retrbinary.side_effect = retrbinary
        buf = io.BytesIO()
        download(mock_ftp, "/uploads/a.txt", buf)
        assert buf.getvalue() == b"hello world"
        assert mock_ftp.retrbinary.call_args[0][0] == "RETR /uploads/a.txt"

    def test_upload_stores_local_file(self, mock_ftp, tmp_path):
        local = tmp_path / "a.txt"
        local.write_bytes(b"data")
        upload(mock_ftp, str(local), "/uploads/a.txt")
        cmd, fh, blocksize = mock_ftp.storbinary.call_args[0]
        assert cmd == "STOR /uploads/a.txt"
        assert fh.name == str(local)
        assert blocksize == 1024
