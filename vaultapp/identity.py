"""
Identity provider seam.

Authentication itself belongs to Django's auth stack; this module only turns
whatever user the request carries into a Requester snapshot for the policy.
"""

from .exceptions import Unauthorized
from .policy import REASON_PENDING_APPROVAL, REASON_SIGN_IN, Requester


class IdentityProvider:

    def resolve(self, user):
        """Return a Requester for ``user``, or None for anonymous callers."""
        return Requester.from_user(user)

    def require(self, user):
        requester = self.resolve(user)
        if requester is None:
            raise Unauthorized(REASON_SIGN_IN)
        return requester

    def require_eligible(self, user):
        requester = self.require(user)
        if not requester.is_eligible:
            raise Unauthorized(REASON_PENDING_APPROVAL)
        return requester


identity_provider = IdentityProvider()
