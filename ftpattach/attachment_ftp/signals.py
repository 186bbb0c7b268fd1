"""
Signals for attachment_ftp.

Wires the attachment lifecycle to the FTP backend for every FtpAttachment
subclass: rename before an update, upload after save, delete after
destroy.
"""
import logging

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from .models import FtpAttachment

logger = logging.getLogger(__name__)


@receiver(pre_save, dispatch_uid="attachment_ftp_rename_file")
def rename_file_before_update(sender, instance, raw=False, **kwargs):
    """
    Move the stored file when the filename changed on an existing record.

    When a new upload is pending the old file is dropped instead; the upload
    writes the new path, and the old one may never have been stored.
    """
    if raw or not isinstance(instance, FtpAttachment):
        return
    if instance._state.adding:
        return

    change = instance.pop_filename_change()
    backend = instance.get_storage_backend()
    if instance.save_attachment():
        backend.discard_previous_file(instance, change)
    else:
        backend.rename_file(instance, change)


@receiver(post_save, dispatch_uid="attachment_ftp_save_to_storage")
def save_file_after_save(sender, instance, raw=False, **kwargs):
    """
    Upload the pending file, if any.
    """
    if raw or not isinstance(instance, FtpAttachment):
        return
    if not instance.save_attachment():
        # A change recorded before create has nothing to rename
        instance.pop_filename_change()
        return

    instance.get_storage_backend().save_to_storage(instance)
    instance.clear_pending_upload()


@receiver(post_delete, dispatch_uid="attachment_ftp_destroy_file")
def destroy_file_after_delete(sender, instance, **kwargs):
    """
    Remove the stored file once the record is gone.
    """
    if not isinstance(instance, FtpAttachment):
        return

    instance.get_storage_backend().destroy_file(instance)
    logger.debug(f"Processed file removal for {instance}")
