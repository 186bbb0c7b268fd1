"""
Abstract attachment model whose file lives on an FTP server.

Concrete models subclass FtpAttachment and may set attachment_options:

    class Photo(FtpAttachment):
        attachment_options = AttachmentOptions(path_prefix="photos")

    photo.ftp_url()  # => {base_url}/photos/0000/0001/mexico.jpg
"""
import os
import re
import tempfile
from dataclasses import dataclass
from typing import Any, Optional

from django.db import models

from .conf import get_ftp_config, get_tempfile_dir
from .partition import join_path, partitioned_path
from .services.backend import FtpStorageBackend

_PATH_RE = re.compile(r"^.*[\\/]")
_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9.\-]")
_EXTENSION_RE = re.compile(r"\.\w+$")


def sanitize_filename(value: Optional[str]) -> Optional[str]:
    """
    Strip any directory part and replace unsafe characters with '_'.

    Example:
        sanitize_filename("/tmp/my photo.jpg")
        # Returns: 'my_photo.jpg'
    """
    if value is None:
        return None
    name = _PATH_RE.sub("", value.strip())
    return _UNSAFE_CHARS_RE.sub("_", name)


@dataclass(frozen=True)
class AttachmentOptions:
    """
    Per-model storage options.

    path_prefix: Remote prefix below base_upload_path; defaults to the
        model's db_table.
    partition: Split the path id into directory segments.
    uuid_primary_key: The path id is a 128-bit hex token.
    config_path: YAML config file; defaults to ATTACHMENT_FTP_CONFIG_PATH.
    """

    path_prefix: Optional[str] = None
    partition: bool = True
    uuid_primary_key: bool = False
    config_path: Optional[str] = None


@dataclass
class FilenameChange:
    """
    Filename change pending within one update of an attachment.

    old_filename is captured the first time the filename changes and kept
    until the change is consumed by the rename or store operation.
    """

    old_filename: Optional[str]
    new_filename: Optional[str]

    @property
    def changed(self) -> bool:
        return bool(self.old_filename) and self.old_filename != self.new_filename


class ParentedAttachment:
    """
    Capability for attachments stored under their parent's path id, such as
    thumbnails stored next to the original.
    """

    def parent_path_id(self) -> Any:
        raise NotImplementedError


class FtpAttachment(models.Model):
    """
    Attachment whose file is stored on the configured FTP server.
    """

    filename = models.CharField(max_length=255, blank=True, default="")
    content_type = models.CharField(max_length=128, blank=True, default="")
    size = models.BigIntegerField(default=0)

    attachment_options = AttachmentOptions()

    class Meta:
        abstract = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._filename_change: Optional[FilenameChange] = None
        self.temp_path: Optional[str] = None
        self._save_attachment = False

    def __str__(self):
        return f"{self.__class__.__name__}({self.filename})"

    # Filename tracking

    def rename(self, value: Optional[str]):
        """
        Set a new (sanitized) filename and remember the previous one for the
        rename performed on the next save.
        """
        new_filename = sanitize_filename(value) or ""
        if self._filename_change is None:
            if self.filename:
                self._filename_change = FilenameChange(
                    old_filename=self.filename,
                    new_filename=new_filename,
                )
        else:
            self._filename_change.new_filename = new_filename
        self.filename = new_filename

    def pop_filename_change(self) -> Optional[FilenameChange]:
        """
        Return the pending filename change and clear it.
        """
        change, self._filename_change = self._filename_change, None
        return change

    # Pending upload

    def set_uploaded_data(self, uploaded, filename: Optional[str] = None):
        """
        Copy an uploaded file-like object to a local temp file and mark the
        attachment for upload on the next save.

        Args:
            uploaded: File-like object (e.g. Django UploadedFile) or bytes
            filename: Name to store under; defaults to uploaded.name
        """
        self.clear_pending_upload()

        fd, path = tempfile.mkstemp(dir=get_tempfile_dir())
        with os.fdopen(fd, "wb") as fh:
            if isinstance(uploaded, (bytes, bytearray)):
                fh.write(uploaded)
            elif hasattr(uploaded, "chunks"):
                for chunk in uploaded.chunks():
                    fh.write(chunk)
            else:
                fh.write(uploaded.read())
            self.size = fh.tell()

        name = filename or os.path.basename(getattr(uploaded, "name", "") or "")
        if name:
            self.rename(name)
        content_type = getattr(uploaded, "content_type", None)
        if content_type:
            self.content_type = content_type

        self.temp_path = path
        self._save_attachment = True

    def save_attachment(self) -> bool:
        """
        Whether an upload is pending for the next save.
        """
        return self._save_attachment and bool(self.temp_path)

    def clear_pending_upload(self):
        if self.temp_path and os.path.exists(self.temp_path):
            os.remove(self.temp_path)
        self.temp_path = None
        self._save_attachment = False

    # Paths and URLs

    @property
    def attachment_path_id(self) -> Any:
        """
        Id used in the remote path: the parent's id for parented
        attachments, else the primary key.
        """
        if isinstance(self, ParentedAttachment):
            parent_id = self.parent_path_id()
            if parent_id is not None:
                return parent_id
        return self.pk

    @property
    def path_prefix(self) -> str:
        prefix = self.attachment_options.path_prefix
        if prefix is None:
            return self._meta.db_table
        return prefix

    @property
    def base_path(self) -> str:
        return join_path(self.path_prefix)

    def thumbnail_name_for(self, thumbnail: Optional[str] = None) -> str:
        """
        Filename of a thumbnail variant.

        Example:
            thumbnail_name_for("thumb")  # photo.jpg => photo_thumb.jpg
        """
        return self.thumbnail_name_from(self.filename, thumbnail)

    @staticmethod
    def thumbnail_name_from(filename: str, thumbnail: Optional[str]) -> str:
        if not thumbnail:
            return filename
        match = _EXTENSION_RE.search(filename)
        if match:
            return f"{filename[:match.start()]}_{thumbnail}{match.group()}"
        return f"{filename}_{thumbnail}"

    def partitioned_path(self, *args: str) -> list:
        options = self.attachment_options
        return partitioned_path(
            self.attachment_path_id,
            *args,
            partition=options.partition,
            uuid_primary_key=options.uuid_primary_key,
        )

    def full_filename_for(
        self, filename: str, thumbnail: Optional[str] = None
    ) -> str:
        """
        Path relative to base_upload_path for the given filename.
        """
        name = self.thumbnail_name_from(filename, thumbnail)
        return join_path(self.base_path, *self.partitioned_path(name))

    def full_filename(self, thumbnail: Optional[str] = None) -> str:
        """
        Path relative to base_upload_path.
        Example: photos/0000/0001/mexico.jpg
        """
        return self.full_filename_for(self.filename, thumbnail)

    # Storage

    def get_ftp_config(self):
        return get_ftp_config(self.attachment_options.config_path)

    def get_storage_backend(self) -> FtpStorageBackend:
        return FtpStorageBackend(self.get_ftp_config())

    def ftp_url(self, thumbnail: Optional[str] = None) -> str:
        return self.get_storage_backend().public_url(self, thumbnail)

    public_filename = ftp_url

    def create_temp_file(self, thumbnail: Optional[str] = None):
        return self.get_storage_backend().create_temp_file(self, thumbnail)

    def current_data(self, thumbnail: Optional[str] = None) -> bytes:
        return self.get_storage_backend().current_data(self, thumbnail)
