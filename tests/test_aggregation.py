from django.test import SimpleTestCase, TestCase

from vaultapp.aggregation import EMPTY_SUMMARY, RatingSummary, rating_aggregator, summarize
from vaultapp.exceptions import NotFound
from vaultapp.models import Resource

from tests.factories import ResourceFactory, ReviewFactory


class SummarizeTests(SimpleTestCase):

    def test_empty_ratings(self):
        self.assertEqual(summarize([]), RatingSummary(0.0, 0))

    def test_mean_and_count(self):
        self.assertEqual(summarize([5, 4, 3]), RatingSummary(4.0, 3))

    def test_rounds_to_two_places(self):
        self.assertEqual(summarize([5, 4, 4]).average_rating, 4.33)
        self.assertEqual(summarize([5, 5, 4]).average_rating, 4.67)

    def test_accepts_any_iterable(self):
        self.assertEqual(summarize(iter([2, 3])), RatingSummary(2.5, 2))


class RecomputeTests(TestCase):

    def setUp(self):
        self.resource = ResourceFactory()

    def _stored(self):
        resource = Resource.objects.get(pk=self.resource.pk)
        return RatingSummary(resource.average_rating, resource.total_ratings)

    def test_no_reviews(self):
        self.assertEqual(rating_aggregator.recompute(self.resource.pk), EMPTY_SUMMARY)
        self.assertEqual(self._stored(), EMPTY_SUMMARY)

    def test_persists_summary(self):
        for rating in (5, 4, 3):
            ReviewFactory(resource=self.resource, rating=rating)

        summary = rating_aggregator.recompute(self.resource.pk)

        self.assertEqual(summary, RatingSummary(4.0, 3))
        self.assertEqual(self._stored(), summary)

    def test_idempotent(self):
        ReviewFactory(resource=self.resource, rating=5)
        ReviewFactory(resource=self.resource, rating=2)

        first = rating_aggregator.recompute(self.resource.pk)
        second = rating_aggregator.recompute(self.resource.pk)

        self.assertEqual(first, second)
        self.assertEqual(self._stored(), RatingSummary(3.5, 2))

    def test_repairs_drifted_cache(self):
        ReviewFactory(resource=self.resource, rating=3)
        Resource.objects.filter(pk=self.resource.pk).update(average_rating=4.9, total_ratings=40)

        rating_aggregator.recompute(self.resource.pk)

        self.assertEqual(self._stored(), RatingSummary(3.0, 1))

    def test_ignores_other_resources(self):
        ReviewFactory(resource=self.resource, rating=1)
        ReviewFactory(rating=5)

        self.assertEqual(rating_aggregator.recompute(self.resource.pk), RatingSummary(1.0, 1))

    def test_unknown_resource(self):
        with self.assertRaises(NotFound):
            rating_aggregator.recompute(self.resource.pk + 1000)
