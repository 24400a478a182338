from rest_framework import generics, status
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from . import services
from .identity import identity_provider
from .serializers import (
    AccessDecisionSerializer, RatingSummarySerializer, ResourceListQuerySerializer,
    ResourceRequestSerializer, ResourceSerializer, ReviewSerializer,
    ReviewUpdateSerializer, ShareSerializer,
)


# ------------------------------------------------
# 1. List / Create Resources
# ------------------------------------------------
class ResourceListCreateView(generics.ListCreateAPIView):
    # identity is checked before any input, so anonymous callers get 401, not DRF's 403
    serializer_class = ResourceSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def get_queryset(self):
        query = ResourceListQuerySerializer(data=self.request.query_params)
        query.is_valid(raise_exception=True)
        return services.list_resources(self.request.user, **query.validated_data)

    def list(self, request, *args, **kwargs):
        identity_provider.require(request.user)
        return super().list(request, *args, **kwargs)

    def create(self, request, *args, **kwargs):
        identity_provider.require_eligible(request.user)
        return super().create(request, *args, **kwargs)

    def perform_create(self, serializer):
        fields = dict(serializer.validated_data)
        restrict = fields.pop("restrict_to_institution", False)
        serializer.instance = services.create_resource(
            self.request.user, restrict_to_institution=restrict, **fields
        )


# ------------------------------------------------
# 2. View / Update / Delete Resource
# ------------------------------------------------
class ResourceDetailView(generics.GenericAPIView):
    # anonymous callers reach the policy and get its "sign-in required" reason
    serializer_class = ResourceSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def get(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        services.require_access(resource, request.user)
        serializer = self.get_serializer(resource)
        return Response(serializer.data, status=200)

    def patch(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        identity_provider.require(request.user)
        serializer = self.get_serializer(resource, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        resource = services.update_resource(resource, request.user, **serializer.validated_data)
        return Response(
            {"message": "Resource updated", "resource": self.get_serializer(resource).data},
            status=200,
        )

    def delete(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        services.delete_resource(resource, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ------------------------------------------------
# 3. Access Decision
# ------------------------------------------------
class ResourceAccessView(generics.GenericAPIView):
    serializer_class = AccessDecisionSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def get(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        decision = services.evaluate_access(resource, request.user)
        return Response(self.get_serializer(decision).data, status=200)


# ------------------------------------------------
# 4. Share / Unshare Resource
# ------------------------------------------------
class ShareView(generics.GenericAPIView):
    serializer_class = ShareSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def post(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        identity_provider.require(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = services.share_resource(resource, request.user, serializer.validated_data["email"])
        return Response({"message": "Access granted", "email": email}, status=200)

    def delete(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        identity_provider.require(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = services.unshare_resource(resource, request.user, serializer.validated_data["email"])
        return Response({"message": "Access revoked", "email": email}, status=200)


# ------------------------------------------------
# 5. Download
# ------------------------------------------------
class DownloadView(generics.GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def post(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        file_url = services.record_download(resource, request.user)
        return Response({"file_url": file_url, "downloads": resource.downloads}, status=200)


# ------------------------------------------------
# 6. List / Submit Reviews
# ------------------------------------------------
class ReviewListCreateView(generics.GenericAPIView):
    serializer_class = ReviewSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def get(self, request, pk, *args, **kwargs):
        resource = services.get_resource(pk)
        reviews = services.list_reviews(resource, request.user)
        return Response(self.get_serializer(reviews, many=True).data, status=200)

    def post(self, request, pk, *args, **kwargs):
        identity_provider.require_eligible(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.submit_review(
            pk,
            request.user,
            serializer.validated_data["rating"],
            serializer.validated_data["comment"],
        )
        return Response(
            {"message": "Review submitted", "review": self.get_serializer(review).data},
            status=status.HTTP_201_CREATED,
        )


# ------------------------------------------------
# 7. Edit / Delete Review
# ------------------------------------------------
class ReviewDetailView(generics.GenericAPIView):
    serializer_class = ReviewUpdateSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def patch(self, request, pk, *args, **kwargs):
        identity_provider.require(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = services.edit_review(pk, request.user, **serializer.validated_data)
        return Response(
            {"message": "Review updated", "review": ReviewSerializer(review).data},
            status=200,
        )

    def delete(self, request, pk, *args, **kwargs):
        summary = services.delete_review(pk, request.user)
        return Response(
            {"message": "Review deleted", "summary": RatingSummarySerializer(summary).data},
            status=200,
        )


# ------------------------------------------------
# 8. Requests Board
# ------------------------------------------------
class ResourceRequestListCreateView(generics.GenericAPIView):
    serializer_class = ResourceRequestSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def get(self, request, *args, **kwargs):
        requests = services.list_open_requests(request.user)
        return Response(self.get_serializer(requests, many=True).data, status=200)

    def post(self, request, *args, **kwargs):
        identity_provider.require_eligible(request.user)
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        resource_request = services.create_request(request.user, **serializer.validated_data)
        return Response(
            {"message": "Request posted", "request": self.get_serializer(resource_request).data},
            status=status.HTTP_201_CREATED,
        )


class ResourceRequestSupportView(generics.GenericAPIView):
    serializer_class = ResourceRequestSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def post(self, request, pk, *args, **kwargs):
        resource_request = services.support_request(pk, request.user)
        return Response(
            {"message": "Request supported", "request": self.get_serializer(resource_request).data},
            status=200,
        )


class ResourceRequestFulfillView(generics.GenericAPIView):
    serializer_class = ResourceRequestSerializer
    permission_classes = [AllowAny]
    authentication_classes = [SessionAuthentication, BasicAuthentication]

    def post(self, request, pk, *args, **kwargs):
        resource_request = services.fulfill_request(pk, request.user)
        return Response(
            {"message": "Request fulfilled", "request": self.get_serializer(resource_request).data},
            status=200,
        )
