"""
Rating summary signals.

delete_review recomputes the summary itself. Reviews that disappear any other
way (an account deletion cascading through its reviews, admin or shell
deletes) are caught here so the cached summary never outlives them.
"""

from django.db.models import QuerySet
from django.db.models.signals import post_delete
from django.dispatch import receiver

from .aggregation import rating_aggregator
from .models import Resource, Review


@receiver(post_delete, sender=Review)
def recompute_after_review_removed(sender, instance, origin=None, **kwargs):
    if getattr(instance, "_summary_handled", False):
        return
    # the resource is being deleted along with its reviews
    if isinstance(origin, Resource) or (isinstance(origin, QuerySet) and origin.model is Resource):
        return
    if not Resource.objects.filter(pk=instance.resource_id).exists():
        return
    rating_aggregator.recompute(instance.resource_id)
