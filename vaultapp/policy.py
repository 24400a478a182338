"""
Resource access policy.

Every decision is a pure function of a resource snapshot and a requester
snapshot supplied by the caller. Nothing here touches the database or the
request, and nothing here raises: denial is an ordinary outcome, returned as
an AccessDecision with a reason the UI can show.

Rules, first match wins:

1. public and not institution-restricted: any signed-in requester
2. anonymous requester: denied
3. requester not approved by their institution: denied
4. restricted to an institution the requester does not belong to: denied,
   whatever the visibility and whoever the owner
5. private: owner, or an email on the shared-with list
6. everything else: allowed
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional

from .validators import normalize_institution

VISIBILITY_PUBLIC = "public"
VISIBILITY_PRIVATE = "private"

REASON_SIGN_IN = "sign-in required"
REASON_PENDING_APPROVAL = "account pending institutional approval"
REASON_PRIVATE = "private resource: owner or explicit share only"


def restricted_reason(institution):
    return f"restricted to members of {institution}"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self):
        return self.allowed


ALLOW = AccessDecision(True)


@dataclass(frozen=True)
class Requester:
    """Identity attributes of the caller, as resolved by the identity provider."""

    id: int
    email: str
    home_institution: str
    is_approved: bool
    pending_approval: bool

    def __post_init__(self):
        object.__setattr__(self, "email", (self.email or "").strip().lower())

    @property
    def is_eligible(self) -> bool:
        return self.is_approved and not self.pending_approval

    @classmethod
    def from_user(cls, user) -> Optional["Requester"]:
        if user is None or not user.is_authenticated:
            return None
        profile = getattr(user, "profile", None)
        if profile is None:
            # no institutional profile yet: signed in but never approved
            return cls(user.id, user.email, "", False, True)
        return cls(
            id=user.id,
            email=user.email,
            home_institution=normalize_institution(profile.home_institution),
            is_approved=profile.is_approved,
            pending_approval=profile.pending_approval,
        )


@dataclass(frozen=True)
class ResourceSnapshot:
    """The visibility attributes of a resource that the policy reads."""

    owner_id: int
    visibility: str
    restricted_to_institution: str = ""
    shared_with: FrozenSet[str] = frozenset()

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(
            self, "restricted_to_institution", normalize_institution(self.restricted_to_institution)
        )
        object.__setattr__(
            self, "shared_with", frozenset(email.strip().lower() for email in self.shared_with)
        )

    @property
    def is_private(self) -> bool:
        return self.visibility == VISIBILITY_PRIVATE

    @classmethod
    def from_resource(cls, resource) -> "ResourceSnapshot":
        return cls(
            owner_id=resource.owner_id,
            visibility=resource.visibility,
            restricted_to_institution=resource.restricted_to_institution,
            shared_with=resource.shared_with,
        )


def evaluate(resource: ResourceSnapshot, requester: Optional[Requester]) -> AccessDecision:
    restricted_to = resource.restricted_to_institution

    if not resource.is_private and not restricted_to:
        if requester is None:
            return AccessDecision(False, REASON_SIGN_IN)
        return ALLOW

    if requester is None:
        return AccessDecision(False, REASON_SIGN_IN)

    if not requester.is_eligible:
        return AccessDecision(False, REASON_PENDING_APPROVAL)

    if restricted_to and requester.home_institution != restricted_to:
        return AccessDecision(False, restricted_reason(restricted_to))

    if resource.is_private:
        if requester.id == resource.owner_id:
            return ALLOW
        if requester.email in resource.shared_with:
            return ALLOW
        return AccessDecision(False, REASON_PRIVATE)

    return ALLOW


class AccessPolicyEvaluator:
    """Callable wrapper so the policy can be injected where an object is expected."""

    def evaluate(self, resource, requester):
        if not isinstance(resource, ResourceSnapshot):
            resource = ResourceSnapshot.from_resource(resource)
        return evaluate(resource, requester)
