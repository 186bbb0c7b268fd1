"""
Thin helpers around ftplib: one scoped session per operation.
"""
import ftplib
import logging
import posixpath
from contextlib import contextmanager
from ftplib import FTP
from typing import Iterator

from ..conf import FtpConfig

logger = logging.getLogger(__name__)

DEFAULT_BLOCKSIZE = 1024


@contextmanager
def ftp_session(config: FtpConfig) -> Iterator[FTP]:
    """
    Open, log in and yield an FTP connection; always close it afterwards.

    Args:
        config: Connection settings

    Yields:
        Logged-in ftplib.FTP instance

    Raises:
        ftplib.all_errors: If connecting or logging in fails
    """
    if config.timeout is not None:
        ftp = FTP(timeout=config.timeout)
    else:
        ftp = FTP()

    try:
        ftp.connect(config.server, config.port)
        ftp.login(config.login, config.password)
        ftp.set_pasv(config.passive)
        yield ftp
    finally:
        if ftp.sock is not None:
            try:
                ftp.quit()
            except ftplib.all_errors as e:
                logger.debug(f"FTP QUIT failed on {config.server}: {e}")
                ftp.close()


def makedirs(ftp: FTP, path: str) -> None:
    """
    FTP equivalent of 'mkdir -p path'.

    Every prefix of path is created in turn. Errors are ignored per
    segment, so an existing directory is fine; missing permissions leave the
    path uncreated without raising.
    """
    prefix = "/" if path.startswith("/") else ""
    route = []
    for part in path.split("/"):
        if not part:
            continue
        route.append(part)
        current = prefix + "/".join(route)
        try:
            ftp.mkd(current)
        except ftplib.all_errors as e:
            logger.debug(f"FTP MKD {current} ignored: {e}")


def download(ftp: FTP, remote_path: str, fileobj) -> None:
    """
    Retrieve remote_path in binary mode into an open, writable file object.
    """
    ftp.retrbinary(f"RETR {remote_path}", fileobj.write)


def upload(
    ftp: FTP,
    local_path: str,
    remote_path: str,
    blocksize: int = DEFAULT_BLOCKSIZE,
) -> None:
    """
    Store local_path at remote_path in binary mode.
    """
    with open(local_path, "rb") as fh:
        ftp.storbinary(f"STOR {remote_path}", fh, blocksize)


def remote_dirname(remote_path: str) -> str:
    return posixpath.dirname(remote_path)
