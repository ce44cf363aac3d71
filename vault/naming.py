"""
Storage key derivation: per-user namespaces, file name sanitizing and
object key composition.
"""
import hashlib
import re
import uuid

STORAGE_ID_LENGTH = 32

_UNSAFE_CHARS = re.compile(r'[^a-zA-Z0-9.\-_]')


def user_storage_id(uid: str) -> str:
    """
    Deterministic, non-reversible storage prefix for a user id
    (truncated SHA-256 hex digest).
    """
    return hashlib.sha256(uid.encode('utf-8')).hexdigest()[:STORAGE_ID_LENGTH]


def sanitize_file_name(name: str) -> str:
    """
    Keep only the last path segment (either separator) and replace anything
    outside [A-Za-z0-9._-] with an underscore.
    """
    only_name = name.split('/')[-1].split('\\')[-1]
    return _UNSAFE_CHARS.sub('_', only_name)


def build_object_key(uid: str, file_name: str) -> str:
    return f"{user_storage_id(uid)}/{uuid.uuid4()}-{sanitize_file_name(file_name)}"
