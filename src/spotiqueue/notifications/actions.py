"""Signed approve/decline tokens carried in chat buttons."""

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

APPROVE = "approve"
DECLINE = "decline"
ACTIONS = (APPROVE, DECLINE)
MAX_AGE = 7 * 24 * 3600  # 7 days


class ActionSigner:
    def __init__(self, secret_key: str, max_age: int = MAX_AGE):
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key, salt="prequeue-action")

    def dumps(self, prequeue_id: str, action: str) -> str:
        if action not in ACTIONS:
            raise ValueError(f"Unknown action: {action}")
        return self._serializer.dumps({"id": prequeue_id, "action": action})

    def loads(self, token: str) -> tuple[str, str] | None:
        """Return ``(prequeue_id, action)`` or None for a forged or stale token."""
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None
        if not isinstance(data, dict) or data.get("action") not in ACTIONS or not data.get("id"):
            return None
        return str(data["id"]), data["action"]
