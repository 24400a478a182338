from django.db import models
from django.contrib.auth.models import User


class Profile(models.Model):
    # institutional identity attached to an auth user by the identity provider
    user = models.OneToOneField(User, related_name="profile", on_delete=models.CASCADE)
    home_institution = models.CharField(max_length=200)
    is_approved = models.BooleanField(default=False)
    pending_approval = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.user.username} @ {self.home_institution}"


class Resource(models.Model):
    VISIBILITY_PUBLIC = "public"
    VISIBILITY_PRIVATE = "private"
    VISIBILITY_CHOICES = [
        (VISIBILITY_PUBLIC, "Public"),
        (VISIBILITY_PRIVATE, "Private"),
    ]

    TYPE_CHOICES = [
        ("notes", "Notes"),
        ("solutions", "Solutions"),
        ("question_papers", "Question Papers"),
        ("lab_reports", "Lab Reports"),
        ("other", "Other"),
    ]

    title = models.CharField(max_length=200)
    subject = models.CharField(max_length=200, blank=True)
    department = models.CharField(max_length=200, blank=True)
    semester = models.PositiveSmallIntegerField(null=True, blank=True)
    resource_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default="other")
    file_url = models.CharField(max_length=500, blank=True)

    owner = models.ForeignKey(User, related_name="owned_resources", on_delete=models.CASCADE)
    owner_institution = models.CharField(max_length=200)
    visibility = models.CharField(max_length=16, choices=VISIBILITY_CHOICES, default=VISIBILITY_PUBLIC)
    # blank means the resource is not restricted to any institution
    restricted_to_institution = models.CharField(max_length=200, blank=True, default="")

    # derived from the live review set, written only by the aggregator
    average_rating = models.FloatField(default=0.0)
    total_ratings = models.PositiveIntegerField(default=0)

    downloads = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    @property
    def shared_with(self):
        # goes through .all() so a prefetch_related("shares") is honoured
        return frozenset(share.email for share in self.shares.all())

    def __str__(self):
        return f"{self.title} (owner={self.owner.username})"


class ResourceShare(models.Model):
    # explicit allowlist entry: one row per email per resource
    resource = models.ForeignKey(Resource, related_name="shares", on_delete=models.CASCADE)
    email = models.EmailField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("resource", "email")

    def __str__(self):
        return f"{self.email} -> {self.resource.title}"


class Review(models.Model):
    resource = models.ForeignKey(Resource, related_name="reviews", on_delete=models.CASCADE)
    author = models.ForeignKey(User, related_name="reviews", on_delete=models.CASCADE)
    rating = models.PositiveSmallIntegerField()
    comment = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.UniqueConstraint(fields=("resource", "author"), name="unique_review_per_author"),
        ]

    def __str__(self):
        return f"{self.author.username} -> {self.resource.title} ({self.rating})"


class ResourceRequest(models.Model):
    STATUS_OPEN = "open"
    STATUS_FULFILLED = "fulfilled"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_FULFILLED, "Fulfilled"),
    ]

    title = models.CharField(max_length=200)
    subject = models.CharField(max_length=200, blank=True)
    semester = models.PositiveSmallIntegerField(null=True, blank=True)
    description = models.TextField(blank=True)

    requested_by = models.ForeignKey(User, related_name="resource_requests", on_delete=models.CASCADE)
    requested_by_institution = models.CharField(max_length=200)
    # the requester's own ask counts as the first
    request_count = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_OPEN)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-request_count", "-created_at")

    def __str__(self):
        return f"{self.title} x{self.request_count} ({self.status})"
