from rest_framework import serializers


class UploadUrlRequestSerializer(serializers.Serializer):
    fileName = serializers.CharField(trim_whitespace=False)
    fileType = serializers.CharField(trim_whitespace=False)


class FileMetadataRequestSerializer(serializers.Serializer):
    objectKey = serializers.CharField(trim_whitespace=False)
    originalName = serializers.CharField(trim_whitespace=False)
    mimeType = serializers.CharField(trim_whitespace=False)
    size = serializers.IntegerField(required=False, allow_null=True, min_value=0)

    def create_fields(self):
        """
        Keyword arguments for MetadataStoreGateway.create_record,
        minus the server-derived ownership fields
        """
        data = self.validated_data
        return {
            'object_key': data['objectKey'],
            'original_name': data['originalName'],
            'mime_type': data['mimeType'],
            'size': data.get('size'),
        }


class DownloadUrlRequestSerializer(serializers.Serializer):
    objectKey = serializers.CharField(trim_whitespace=False)


class FileRecordSerializer(serializers.Serializer):
    """
    Serializer for file metadata records
    """
    id = serializers.CharField(read_only=True)
    uid = serializers.CharField(read_only=True)
    userStorageId = serializers.CharField(source='user_storage_id', read_only=True)
    bucket = serializers.CharField(read_only=True)
    objectKey = serializers.CharField(source='object_key', read_only=True)
    originalName = serializers.CharField(source='original_name', read_only=True)
    mimeType = serializers.CharField(source='mime_type', read_only=True)
    size = serializers.IntegerField(read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True, allow_null=True)
