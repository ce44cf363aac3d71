from django.urls import path

from . import views


def build_urlpatterns(context):
    """
    Route table with ``context`` bound into every view that talks to a backing service
    """
    return [
        path('health', views.HealthView.as_view(), name='health'),
        path('test-firestore-write', views.FirestoreWriteCheckView.as_view(context=context), name='test_firestore_write'),
        path('upload-url', views.UploadUrlView.as_view(context=context), name='upload_url'),
        path('files', views.FileCreateView.as_view(context=context), name='file_create'),
        path('files/<str:file_id>', views.FileDeleteView.as_view(context=context), name='file_delete'),
        path('list-files', views.FileListView.as_view(context=context), name='file_list'),
        path('download-url', views.DownloadUrlView.as_view(context=context), name='download_url'),
    ]
