"""
FTP storage backend for attachments.

Every operation opens its own FTP session and closes it before returning.
Fetch, store and rename propagate remote errors; delete and directory
creation are best effort.
"""
import logging
import tempfile
from typing import Optional

from ..conf import FtpConfig, get_tempfile_dir
from ..partition import join_path
from . import ftp_client

logger = logging.getLogger(__name__)


class FtpStorageBackend:
    """
    Stores, fetches, renames and deletes attachment files on one FTP server.

    The attachment passed to each method must provide full_filename(),
    full_filename_for(), save_attachment() and temp_path; see
    attachment_ftp.models.FtpAttachment.
    """

    def __init__(self, config: FtpConfig):
        self.config = config

    def __repr__(self) -> str:
        return f"<FtpStorageBackend server={self.config.server}>"

    @property
    def read_only(self) -> bool:
        return self.config.read_only

    def remote_path(self, full_filename: str) -> str:
        """
        Absolute path on the FTP server for a file relative to the upload
        root.
        """
        return join_path(self.config.base_upload_path, full_filename)

    def public_url(self, attachment, thumbnail: Optional[str] = None) -> str:
        """
        URL where the stored file can be read.
        """
        return join_path(
            self.config.base_url, attachment.full_filename(thumbnail)
        )

    def create_temp_file(self, attachment, thumbnail: Optional[str] = None):
        """
        Download the attachment into a local temporary file.

        Returns:
            Open NamedTemporaryFile positioned at the start. The caller owns
            it; the file is removed when it is closed.

        Raises:
            ftplib.all_errors: If the download fails
        """
        src_path = self.remote_path(attachment.full_filename(thumbnail))
        tmp = tempfile.NamedTemporaryFile(mode="w+b", dir=get_tempfile_dir())
        try:
            with ftp_client.ftp_session(self.config) as ftp:
                ftp_client.download(ftp, src_path, tmp)
        except Exception:
            tmp.close()
            raise

        tmp.flush()
        tmp.seek(0)
        return tmp

    def current_data(self, attachment, thumbnail: Optional[str] = None) -> bytes:
        with self.create_temp_file(attachment, thumbnail) as tmp:
            return tmp.read()

    def save_to_storage(self, attachment) -> bool:
        """
        Upload the attachment's pending temp file.

        Skipped when no upload is pending or the config is read-only. The
        destination directory is created best effort first.
        """
        if attachment.save_attachment() and not self.read_only:
            dest_path = self.remote_path(attachment.full_filename())
            with ftp_client.ftp_session(self.config) as ftp:
                ftp_client.makedirs(ftp, ftp_client.remote_dirname(dest_path))
                ftp_client.upload(ftp, attachment.temp_path, dest_path)
            logger.info(f"Uploaded attachment to {dest_path}")

        attachment.pop_filename_change()
        return True

    def rename_file(self, attachment, change) -> bool:
        """
        Move the stored file when the filename changed in this update.

        Args:
            attachment: Attachment being updated
            change: FilenameChange for the update, or None

        Returns:
            True; no remote call is made when nothing changed or the config
            is read-only
        """
        if change is None or not change.changed or self.read_only:
            return True

        src_path = self.remote_path(
            attachment.full_filename_for(change.old_filename)
        )
        dest_path = self.remote_path(attachment.full_filename())
        with ftp_client.ftp_session(self.config) as ftp:
            ftp.rename(src_path, dest_path)
        logger.info(f"Renamed attachment {src_path} -> {dest_path}")
        return True

    def discard_previous_file(self, attachment, change) -> bool:
        """
        Best-effort delete of the file stored under the old filename, used
        when a new upload replaces it under a new name.
        """
        if change is None or not change.changed or self.read_only:
            return True

        self._delete_quietly(
            self.remote_path(attachment.full_filename_for(change.old_filename))
        )
        return True

    def destroy_file(self, attachment) -> bool:
        """
        Delete the stored file. A file that is already gone, or any other
        remote failure, is not an error.
        """
        if self.read_only:
            return True

        self._delete_quietly(self.remote_path(attachment.full_filename()))
        return True

    def _delete_quietly(self, dest_path: str):
        try:
            with ftp_client.ftp_session(self.config) as ftp:
                ftp.delete(dest_path)
            logger.info(f"Deleted attachment {dest_path}")
        except Exception as e:
            logger.warning(f"Failed to delete attachment {dest_path}: {e}")
