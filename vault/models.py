from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class FileRecord:
    """
    Metadata for one uploaded object, owned by a single user.

    Stored in the document database with camelCase field names; ``id`` is
    the document id and ``created_at`` is assigned by the store.
    """
    id: str
    uid: str
    user_storage_id: str
    bucket: str
    object_key: Optional[str]
    original_name: str
    mime_type: str
    size: Optional[int] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Dict[str, Any]) -> 'FileRecord':
        return cls(
            id=doc_id,
            uid=data.get('uid'),
            user_storage_id=data.get('userStorageId'),
            bucket=data.get('bucket'),
            object_key=data.get('objectKey'),
            original_name=data.get('originalName'),
            mime_type=data.get('mimeType'),
            size=data.get('size'),
            created_at=data.get('createdAt'),
        )

    def __str__(self):
        return f"{self.uid}: {self.original_name} ({self.object_key})"


def document_fields(*, uid, user_storage_id, bucket, object_key, original_name, mime_type, size=None):
    """
    Document body for a new record, without the server-assigned ``createdAt``
    """
    return {
        'uid': uid,
        'userStorageId': user_storage_id,
        'bucket': bucket,
        'objectKey': object_key,
        'originalName': original_name,
        'mimeType': mime_type,
        'size': size,
    }


def newest_first(records: Iterable[FileRecord]) -> List[FileRecord]:
    # Records still waiting on their server timestamp sort last
    return sorted(records, key=lambda record: record.created_at or _EPOCH, reverse=True)
