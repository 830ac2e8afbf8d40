from enum import StrEnum


class ClaimOutcome(StrEnum):
    CLAIMED = "claimed"
    ALREADY_OWNED_BY_SELF = "already_owned_by_self"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"

    @property
    def succeeded(self) -> bool:
        """True when the row now belongs to the claimant, whether or not this call moved it."""
        return self in {ClaimOutcome.CLAIMED, ClaimOutcome.ALREADY_OWNED_BY_SELF}
