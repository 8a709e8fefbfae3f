from django.urls import path

from .views import CleanupDesignsView

urlpatterns = [
    path("cleanup-designs/", CleanupDesignsView.as_view(), name="cron-cleanup-designs"),
]
