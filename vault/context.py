from dataclasses import dataclass

from django.conf import settings

from .firebase import FirebaseApp
from .identity import FirebaseIdentityVerifier, IdentityVerifier
from .metadata_store import FirestoreMetadataGateway, MetadataStoreGateway
from .object_store import ObjectStoreGateway, S3ObjectStoreGateway, get_s3_client


@dataclass(frozen=True)
class AppContext:
    """
    The client handles one process shares across all requests.
    Passed explicitly into every view by ``vault.urls.build_urlpatterns``.
    """
    identity: IdentityVerifier
    objects: ObjectStoreGateway
    metadata: MetadataStoreGateway
    bucket: str

    @classmethod
    def from_settings(cls):
        firebase = FirebaseApp(settings.FIREBASE_SERVICE_ACCOUNT_JSON)
        s3_client = get_s3_client(
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
        return cls(
            identity=FirebaseIdentityVerifier(firebase),
            objects=S3ObjectStoreGateway(s3_client, expires_in=settings.PRESIGNED_URL_EXPIRES_IN),
            metadata=FirestoreMetadataGateway(firebase, collection=settings.FILES_COLLECTION),
            bucket=settings.S3_BUCKET,
        )
