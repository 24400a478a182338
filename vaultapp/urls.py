from django.urls import path
from .views import (
    ResourceListCreateView, ResourceDetailView, ResourceAccessView, ShareView,
    DownloadView, ReviewListCreateView, ReviewDetailView,
    ResourceRequestListCreateView, ResourceRequestSupportView, ResourceRequestFulfillView,
)

urlpatterns = [
    path("resources/", ResourceListCreateView.as_view(), name="resource-list"),
    path("resources/<int:pk>/", ResourceDetailView.as_view(), name="resource-detail"),
    path("resources/<int:pk>/access/", ResourceAccessView.as_view(), name="resource-access"),
    path("resources/<int:pk>/share/", ShareView.as_view(), name="resource-share"),
    path("resources/<int:pk>/download/", DownloadView.as_view(), name="resource-download"),
    path("resources/<int:pk>/reviews/", ReviewListCreateView.as_view(), name="review-list"),
    path("reviews/<int:pk>/", ReviewDetailView.as_view(), name="review-detail"),
    path("requests/", ResourceRequestListCreateView.as_view(), name="request-list"),
    path("requests/<int:pk>/support/", ResourceRequestSupportView.as_view(), name="request-support"),
    path("requests/<int:pk>/fulfill/", ResourceRequestFulfillView.as_view(), name="request-fulfill"),
]
