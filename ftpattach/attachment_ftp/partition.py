"""
Partitioning of attachment identifiers into remote directory segments.

Splitting the identifier keeps the number of entries in any single remote
directory bounded no matter how many attachments exist.
"""
import hashlib
import uuid
from typing import Any, List

INTEGER_PAD_WIDTH = 8
INTEGER_SEGMENT_WIDTH = 4
UUID_SEGMENT_WIDTH = 16
HASH_SEGMENT_WIDTH = 32


def _chunks(value: str, width: int) -> List[str]:
    return [value[i:i + width] for i in range(0, len(value), width)]


def partitioned_path(
    path_id: Any,
    *args: str,
    partition: bool = True,
    uuid_primary_key: bool = False,
) -> List[str]:
    """
    Partition path_id into path segments, followed by args.

    Args:
        path_id: Identifier of the attachment (int, str or UUID)
        *args: Trailing path segments, usually the file name
        partition: When False, return args unchanged
        uuid_primary_key: Treat path_id as a 128-bit hex token

    Returns:
        List of path segments

    Example:
        partitioned_path(1, "photo.jpg")
        # Returns: ['0000', '0001', 'photo.jpg']
    """
    if not partition:
        return list(args)

    if uuid_primary_key:
        token = path_id.hex if isinstance(path_id, uuid.UUID) else str(path_id)
        head = token[:UUID_SEGMENT_WIDTH] or "-"
        tail = token[UUID_SEGMENT_WIDTH:] or "-"
        return [head, tail, *args]

    # bool is an int subclass but never a real identifier
    if isinstance(path_id, int) and not isinstance(path_id, bool):
        padded = f"{path_id:0{INTEGER_PAD_WIDTH}d}"
        return _chunks(padded, INTEGER_SEGMENT_WIDTH) + list(args)

    digest = hashlib.sha512(str(path_id).encode("utf-8")).hexdigest()
    return _chunks(digest, HASH_SEGMENT_WIDTH) + list(args)


def join_path(*parts: str) -> str:
    """
    Join path parts with single slashes.

    Empty parts are skipped and a leading slash on the first non-empty part
    is kept. Unlike os.path.join, a part starting with a slash does not
    discard what came before it.
    """
    parts = [str(p) for p in parts if p not in (None, "")]
    if not parts:
        return ""
    head = parts[0].rstrip("/") or "/"
    rest = [p.strip("/") for p in parts[1:]]
    rest = [p for p in rest if p]
    if not rest:
        return head
    if head == "/":
        return "/" + "/".join(rest)
    return "/".join([head, *rest])
