from typing import Optional

from ..core.security import IdentityClaim


class Session:
    """The current actor's session, owned by the SessionStore.

    ``ready`` turns True once, after the initial load attempt, and never
    reverts. Readers (the access gate, views) only use the properties.
    """

    def __init__(self):
        self._identity_claim: Optional[IdentityClaim] = None
        self._ready = False

    @property
    def identity_claim(self) -> Optional[IdentityClaim]:
        return self._identity_claim

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def is_authenticated(self) -> bool:
        return self._ready and self._identity_claim is not None

    def _mark_ready(self):
        self._ready = True

    def _set_claim(self, claim: Optional[IdentityClaim]):
        self._identity_claim = claim

    def __repr__(self):
        return f"<Session(ready={self._ready}, claim={self._identity_claim!r})>"
