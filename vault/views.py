import logging

from django.http import JsonResponse
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import BearerTokenAuthentication
from .exceptions import Forbidden, InternalInconsistency, InvalidRequest, NotFound, StoreUnavailable
from .naming import build_object_key, user_storage_id
from .serializers import (
    DownloadUrlRequestSerializer,
    FileMetadataRequestSerializer,
    FileRecordSerializer,
    UploadUrlRequestSerializer,
)

logger = logging.getLogger(__name__)


class VaultAPIView(APIView):
    """
    Base view: holds the application context and authenticates with its
    identity verifier.
    """
    context = None
    permission_classes = [IsAuthenticated]

    def get_authenticators(self):
        return [BearerTokenAuthentication(self.context.identity)]


class HealthView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'ok': True})


class FirestoreWriteCheckView(VaultAPIView):
    """
    Write a probe document to the metadata store
    """
    permission_classes = [AllowAny]

    def get_authenticators(self):
        return []

    def get(self, request):
        try:
            doc_id = self.context.metadata.write_probe()
        except StoreUnavailable as e:
            logger.error(f"Test Firestore write error: {e.detail}")
            return Response(
                {'ok': False, 'error': str(e.detail)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        return Response({'ok': True, 'id': doc_id})


class UploadUrlView(VaultAPIView):
    """
    Issue a pre-signed PUT URL under the caller's storage namespace.
    Nothing is persisted until the client registers the upload.
    """

    def post(self, request):
        serializer = UploadUrlRequestSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidRequest('fileName and fileType are required')

        object_key = build_object_key(request.user.uid, serializer.validated_data['fileName'])

        try:
            upload_url = self.context.objects.issue_upload_url(
                self.context.bucket,
                object_key,
                serializer.validated_data['fileType'],
            )
        except StoreUnavailable as e:
            logger.error(f"Error generating upload URL: {e.detail}")
            raise StoreUnavailable('Failed to generate upload URL')

        return Response({
            'uploadUrl': upload_url,
            'objectKey': object_key,
            'bucket': self.context.bucket,
        })


class FileCreateView(VaultAPIView):
    """
    Register metadata for an uploaded object
    """

    def post(self, request):
        serializer = FileMetadataRequestSerializer(data=request.data)
        if not serializer.is_valid():
            if set(serializer.errors) == {'size'}:
                raise InvalidRequest('size must be a non-negative integer')
            raise InvalidRequest('objectKey, originalName, and mimeType are required')

        uid = request.user.uid
        # TODO: HEAD the object before saving so unissued or failed uploads cannot be registered
        try:
            record = self.context.metadata.create_record(
                uid=uid,
                user_storage_id=user_storage_id(uid),
                bucket=self.context.bucket,
                **serializer.create_fields()
            )
        except StoreUnavailable as e:
            logger.error(f"Error saving file metadata: {e.detail}")
            raise StoreUnavailable('Failed to save file metadata')

        return Response(FileRecordSerializer(record).data, status=status.HTTP_201_CREATED)


class FileListView(VaultAPIView):
    """
    List the caller's files, newest first
    """

    def get(self, request):
        uid = request.user.uid
        try:
            records = self.context.metadata.list_by_owner(uid)
        except StoreUnavailable as e:
            logger.error(f"Error listing files: {e.detail}")
            raise StoreUnavailable(str(e.detail) or 'Failed to list files')

        return Response({
            'uid': uid,
            'files': FileRecordSerializer(records, many=True).data,
        })


class DownloadUrlView(VaultAPIView):
    """
    Issue a pre-signed GET URL for one of the caller's files.
    Keys owned by someone else are reported as missing.
    """

    def post(self, request):
        serializer = DownloadUrlRequestSerializer(data=request.data)
        if not serializer.is_valid():
            raise InvalidRequest('objectKey is required')

        object_key = serializer.validated_data['objectKey']

        try:
            record = self.context.metadata.find_by_owner_and_key(request.user.uid, object_key)
            if record is None:
                raise NotFound('File not found for this user')
            download_url = self.context.objects.issue_download_url(record.bucket or self.context.bucket, object_key)
        except StoreUnavailable as e:
            logger.error(f"Error generating download URL: {e.detail}")
            raise StoreUnavailable('Failed to generate download URL')

        return Response({
            'downloadUrl': download_url,
            'objectKey': object_key,
            'originalName': record.original_name,
            'mimeType': record.mime_type,
        })


class FileDeleteView(VaultAPIView):
    """
    Delete the stored object, then its metadata.

    If the object delete fails the record is left in place; a failure after
    the object is gone leaves an orphaned record-less object behind.
    """

    def delete(self, request, file_id):
        if not file_id.strip():
            raise InvalidRequest('File id is required')

        try:
            record = self.context.metadata.get_by_id(file_id)
            if record is None:
                raise NotFound('File not found')

            if record.uid != request.user.uid:
                raise Forbidden('Not authorized to delete this file')

            if not record.object_key:
                raise InternalInconsistency('File metadata missing objectKey')

            self.context.objects.delete_object(record.bucket or self.context.bucket, record.object_key)
            self.context.metadata.delete_record(record.id)
        except StoreUnavailable as e:
            logger.error(f"Error deleting file {file_id}: {e.detail}")
            raise StoreUnavailable('Failed to delete file')

        return Response({'success': True})


def route_not_found(request, exception=None):
    return JsonResponse({'error': 'Not found'}, status=status.HTTP_404_NOT_FOUND)


def server_error(request):
    return JsonResponse({'error': 'Internal server error'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
