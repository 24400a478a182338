from rest_framework import serializers

from .models import Resource, ResourceRequest, Review


# ---------------------------
# Resource Serializer
# ---------------------------
class ResourceSerializer(serializers.ModelSerializer):
    owner = serializers.ReadOnlyField(source="owner.username")
    # set the restriction to the owner's own institution; read back below
    restrict_to_institution = serializers.BooleanField(write_only=True, required=False)
    shared_with = serializers.SerializerMethodField()

    class Meta:
        model = Resource
        fields = (
            "id", "title", "subject", "department", "semester", "resource_type",
            "file_url", "owner", "owner_institution", "visibility",
            "restricted_to_institution", "restrict_to_institution", "shared_with",
            "average_rating", "total_ratings", "downloads", "created_at",
        )
        read_only_fields = (
            "id", "owner_institution", "restricted_to_institution",
            "average_rating", "total_ratings", "downloads", "created_at",
        )

    def get_shared_with(self, obj):
        # only the owner sees who else holds a share
        request = self.context.get("request")
        if request is None or request.user.id != obj.owner_id:
            return None
        return sorted(obj.shared_with)


class ResourceListQuerySerializer(serializers.Serializer):
    subject = serializers.CharField(required=False)
    department = serializers.CharField(required=False)
    semester = serializers.IntegerField(required=False, min_value=1)
    resource_type = serializers.ChoiceField(choices=Resource.TYPE_CHOICES, required=False)
    visibility = serializers.ChoiceField(choices=Resource.VISIBILITY_CHOICES, required=False)
    sort = serializers.ChoiceField(
        choices=("latest", "highest_rated", "most_popular"), required=False, default="latest"
    )
    mine = serializers.BooleanField(required=False, default=False)


# ---------------------------
# Share Serializer
# ---------------------------
class ShareSerializer(serializers.Serializer):
    email = serializers.EmailField()


# ---------------------------
# Review Serializers
# ---------------------------
class ReviewSerializer(serializers.ModelSerializer):
    author = serializers.ReadOnlyField(source="author.username")

    class Meta:
        model = Review
        fields = ("id", "resource", "author", "rating", "comment", "created_at", "updated_at")
        read_only_fields = ("id", "resource", "created_at", "updated_at")


class ReviewUpdateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(required=False)
    comment = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        if not data:
            raise serializers.ValidationError("Provide a rating or a comment to update.")
        return data


# ---------------------------
# Result Serializers
# ---------------------------
class AccessDecisionSerializer(serializers.Serializer):
    allowed = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)


class RatingSummarySerializer(serializers.Serializer):
    average_rating = serializers.FloatField()
    total_ratings = serializers.IntegerField()


# ---------------------------
# Request Board Serializer
# ---------------------------
class ResourceRequestSerializer(serializers.ModelSerializer):
    requested_by = serializers.ReadOnlyField(source="requested_by.username")

    class Meta:
        model = ResourceRequest
        fields = (
            "id", "title", "subject", "semester", "description", "requested_by",
            "requested_by_institution", "request_count", "status", "created_at",
        )
        read_only_fields = (
            "id", "requested_by_institution", "request_count", "status", "created_at",
        )
