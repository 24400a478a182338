"""
Access policy tests. The policy is pure, so these run on plain snapshots
without touching the database.
"""

from django.test import SimpleTestCase

from vaultapp.policy import (
    REASON_PENDING_APPROVAL, REASON_PRIVATE, REASON_SIGN_IN,
    AccessDecision, AccessPolicyEvaluator, Requester, ResourceSnapshot, evaluate,
)


def _requester(id=2, email="u2@x.edu", institution="IIT Delhi", approved=True, pending=False):
    return Requester(
        id=id, email=email, home_institution=institution,
        is_approved=approved, pending_approval=pending,
    )


OWNER = _requester(id=1, email="u1@x.edu")
PEER = _requester(id=2, email="u2@x.edu")
CLASSMATE = _requester(id=3, email="u3@x.edu")
OUTSIDER = _requester(id=4, email="u4@bits.edu", institution="BITS Pilani")
PENDING = _requester(id=5, email="u5@gmail.com", approved=False, pending=True)

PUBLIC = ResourceSnapshot(owner_id=1, visibility="public")
PRIVATE_SHARED = ResourceSnapshot(owner_id=1, visibility="private", shared_with=frozenset({"u2@x.edu"}))
RESTRICTED_PUBLIC = ResourceSnapshot(owner_id=1, visibility="public", restricted_to_institution="IIT Delhi")
RESTRICTED_PRIVATE = ResourceSnapshot(
    owner_id=1, visibility="private", restricted_to_institution="IIT Delhi",
    shared_with=frozenset({"u4@bits.edu"}),
)


class PublicResourceTests(SimpleTestCase):

    def test_any_signed_in_requester_allowed(self):
        for requester in (OWNER, PEER, OUTSIDER):
            self.assertEqual(evaluate(PUBLIC, requester), AccessDecision(True))

    def test_anonymous_requires_sign_in(self):
        decision = evaluate(PUBLIC, None)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, REASON_SIGN_IN)

    def test_pending_account_still_sees_unrestricted_public(self):
        # the public tier is decided before eligibility
        self.assertTrue(evaluate(PUBLIC, PENDING).allowed)


class EligibilityTests(SimpleTestCase):

    def test_pending_account_denied_on_private(self):
        decision = evaluate(PRIVATE_SHARED, PENDING)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, REASON_PENDING_APPROVAL)

    def test_unapproved_owner_denied_on_own_private_resource(self):
        owner = _requester(id=1, email="u1@x.edu", approved=False, pending=False)
        self.assertEqual(evaluate(PRIVATE_SHARED, owner).reason, REASON_PENDING_APPROVAL)

    def test_approved_but_still_pending_denied(self):
        requester = _requester(approved=True, pending=True)
        self.assertEqual(evaluate(RESTRICTED_PUBLIC, requester).reason, REASON_PENDING_APPROVAL)

    def test_anonymous_denied_on_restricted(self):
        self.assertEqual(evaluate(RESTRICTED_PUBLIC, None).reason, REASON_SIGN_IN)


class InstitutionRestrictionTests(SimpleTestCase):

    def test_member_allowed(self):
        self.assertTrue(evaluate(RESTRICTED_PUBLIC, CLASSMATE).allowed)

    def test_non_member_denied_with_institution_named(self):
        decision = evaluate(RESTRICTED_PUBLIC, OUTSIDER)
        self.assertFalse(decision.allowed)
        self.assertIn("IIT Delhi", decision.reason)

    def test_restriction_beats_explicit_share(self):
        # OUTSIDER is on the shared-with list but outside the institution
        decision = evaluate(RESTRICTED_PRIVATE, OUTSIDER)
        self.assertFalse(decision.allowed)
        self.assertIn("IIT Delhi", decision.reason)

    def test_restriction_applies_to_owner_from_other_institution(self):
        owner_elsewhere = _requester(id=1, email="u1@x.edu", institution="BITS Pilani")
        self.assertFalse(evaluate(RESTRICTED_PUBLIC, owner_elsewhere).allowed)

    def test_non_member_denied_whatever_the_visibility(self):
        for visibility in ("public", "private"):
            resource = ResourceSnapshot(
                owner_id=1, visibility=visibility, restricted_to_institution="IIT Delhi"
            )
            self.assertFalse(evaluate(resource, OUTSIDER).allowed)


class PrivateResourceTests(SimpleTestCase):

    def test_owner_always_allowed(self):
        self.assertTrue(evaluate(PRIVATE_SHARED, OWNER).allowed)

    def test_shared_email_allowed(self):
        self.assertTrue(evaluate(PRIVATE_SHARED, PEER).allowed)

    def test_shared_email_matches_case_insensitively(self):
        peer = _requester(id=2, email="U2@X.EDU")
        self.assertTrue(evaluate(PRIVATE_SHARED, peer).allowed)

    def test_snapshot_normalises_shared_emails(self):
        resource = ResourceSnapshot(
            owner_id=1, visibility="private", shared_with=frozenset({" U2@X.edu ", "u3@x.EDU"})
        )

        self.assertEqual(resource.shared_with, frozenset({"u2@x.edu", "u3@x.edu"}))
        self.assertTrue(evaluate(resource, PEER).allowed)
        self.assertTrue(evaluate(resource, CLASSMATE).allowed)

    def test_same_institution_alone_is_not_enough(self):
        decision = evaluate(PRIVATE_SHARED, CLASSMATE)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, REASON_PRIVATE)

    def test_private_unrestricted_shared_with_other_institution(self):
        resource = ResourceSnapshot(owner_id=1, visibility="private", shared_with=frozenset({"u4@bits.edu"}))
        self.assertTrue(evaluate(resource, OUTSIDER).allowed)


class EvaluatorTests(SimpleTestCase):

    def test_decision_is_truthy_only_when_allowed(self):
        self.assertTrue(AccessDecision(True))
        self.assertFalse(AccessDecision(False, REASON_SIGN_IN))

    def test_evaluator_accepts_snapshot(self):
        self.assertEqual(
            AccessPolicyEvaluator().evaluate(PRIVATE_SHARED, CLASSMATE),
            evaluate(PRIVATE_SHARED, CLASSMATE),
        )

    def test_evaluation_is_repeatable(self):
        first = evaluate(RESTRICTED_PRIVATE, CLASSMATE)
        second = evaluate(RESTRICTED_PRIVATE, CLASSMATE)
        self.assertEqual(first, second)
