from typing import Any
from uuid import UUID

from inkpost.domain.entities import User
from inkpost.rules.models import RbacRules


class PolicyEngine:
    """Ownership and role checks re-run server-side before every write."""

    def __init__(self, rules: RbacRules):
        self.rules = rules

    def has_permission(self, user: User | None, action: str) -> bool:
        """RBAC lookup; supports "*" and scoped wildcards like "tweet:*"."""
        if user is None:
            return False

        allowed_actions = self.rules.roles.get(user.role, [])
        if "*" in allowed_actions or action in allowed_actions:
            return True
        if ":" in action:
            scope = action.split(":")[0]
            if f"{scope}:*" in allowed_actions:
                return True
        return False

    @staticmethod
    def owns(user: User | None, resource: Any) -> bool:
        if user is None:
            return False
        owner_id = getattr(resource, "user_id", None)
        if owner_id is None:
            return False
        return str(owner_id) == str(user.id)

    def can_edit_post(self, user: User | None, post: Any) -> bool:
        return self.owns(user, post)

    def can_delete_post(self, user: User | None, post: Any) -> bool:
        return self.owns(user, post)

    def can_delete_comment(self, user: User | None, comment: Any, parent_owner_id: UUID) -> bool:
        # Comment author or the author of the post/tweet it hangs off.
        if user is None:
            return False
        return self.owns(user, comment) or str(parent_owner_id) == str(user.id)

    def can_edit_tweet(self, user: User | None, tweet: Any) -> bool:
        return self.owns(user, tweet)

    def can_delete_tweet(self, user: User | None, tweet: Any) -> bool:
        return self.owns(user, tweet) or self.has_permission(user, "tweet:delete_any")
