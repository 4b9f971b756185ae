"""Ordered endpoint candidates for a network profile."""

from solana_gateway.models.network import NetworkProfile


class EndpointPool:
    """Static, ordered list of RPC endpoints to try for one network."""

    def __init__(self, profile: NetworkProfile):
        if profile is None:
            raise ValueError("profile is required")
        self._profile = profile
        self._candidates = tuple(dict.fromkeys(u.rstrip("/") for u in profile.endpoints))

    @property
    def profile(self) -> NetworkProfile:
        return self._profile

    @property
    def network(self) -> str:
        return self._profile.name

    @property
    def commitment(self) -> str:
        return self._profile.commitment

    def candidates(self) -> tuple[str, ...]:
        """Endpoints in preference order, primary first."""
        return self._candidates

    def __len__(self) -> int:
        return len(self._candidates)
