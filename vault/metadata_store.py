import abc
import logging
from typing import List, Optional

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from .exceptions import StoreUnavailable
from .models import FileRecord, document_fields, newest_first

logger = logging.getLogger(__name__)

STORE_ERRORS = (GoogleAPIError, GoogleAuthError)


class MetadataStoreGateway(abc.ABC):
    @abc.abstractmethod
    def create_record(self, **fields) -> FileRecord:
        """
        Persist a new record; the store assigns ``id`` and ``created_at``.
        """

    @abc.abstractmethod
    def list_by_owner(self, uid: str) -> List[FileRecord]:
        """
        All records owned by ``uid``, newest first.
        """

    @abc.abstractmethod
    def find_by_owner_and_key(self, uid: str, object_key: str) -> Optional[FileRecord]:
        pass

    @abc.abstractmethod
    def get_by_id(self, record_id: str) -> Optional[FileRecord]:
        pass

    @abc.abstractmethod
    def delete_record(self, record_id: str) -> None:
        pass

    @abc.abstractmethod
    def write_probe(self) -> str:
        """
        Write a throwaway document and return its id (connectivity check).
        """


class FirestoreMetadataGateway(MetadataStoreGateway):
    probe_collection = 'test'

    def __init__(self, firebase, collection: str = 'files'):
        self._firebase = firebase
        self.collection = collection

    @property
    def _files(self):
        return self._firebase.firestore.collection(self.collection)

    def create_record(self, **fields) -> FileRecord:
        document = document_fields(**fields)
        document['createdAt'] = firestore.SERVER_TIMESTAMP
        try:
            _, doc_ref = self._files.add(document)
            snapshot = doc_ref.get()
        except STORE_ERRORS as e:
            raise self._unavailable('create record', e)
        return FileRecord.from_document(doc_ref.id, snapshot.to_dict())

    def list_by_owner(self, uid: str) -> List[FileRecord]:
        query = self._files.where(filter=firestore.FieldFilter('uid', '==', uid))
        try:
            snapshots = list(query.stream())
        except STORE_ERRORS as e:
            raise self._unavailable('list records', e)
        # No composite index on (uid, createdAt); order after the fetch
        return newest_first(FileRecord.from_document(s.id, s.to_dict()) for s in snapshots)

    def find_by_owner_and_key(self, uid: str, object_key: str) -> Optional[FileRecord]:
        query = (
            self._files
            .where(filter=firestore.FieldFilter('uid', '==', uid))
            .where(filter=firestore.FieldFilter('objectKey', '==', object_key))
            .limit(1)
        )
        try:
            snapshots = list(query.stream())
        except STORE_ERRORS as e:
            raise self._unavailable('find record', e)
        if not snapshots:
            return None
        return FileRecord.from_document(snapshots[0].id, snapshots[0].to_dict())

    def get_by_id(self, record_id: str) -> Optional[FileRecord]:
        try:
            snapshot = self._files.document(record_id).get()
        except STORE_ERRORS as e:
            raise self._unavailable('get record', e)
        if not snapshot.exists:
            return None
        return FileRecord.from_document(snapshot.id, snapshot.to_dict())

    def delete_record(self, record_id: str) -> None:
        try:
            self._files.document(record_id).delete()
        except STORE_ERRORS as e:
            raise self._unavailable('delete record', e)

    def write_probe(self) -> str:
        collection = self._firebase.firestore.collection(self.probe_collection)
        try:
            _, doc_ref = collection.add({
                'msg': 'hello from backend',
                'createdAt': firestore.SERVER_TIMESTAMP,
            })
        except STORE_ERRORS as e:
            raise self._unavailable('write probe document', e)
        return doc_ref.id

    def _unavailable(self, operation, error):
        logger.error(f"Firestore failed to {operation}: {error}")
        return StoreUnavailable(f'Failed to {operation}: {error}')
