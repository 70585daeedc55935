"""OAuth provider client interface."""

from snapcal.domain.value import HandshakeState, ProviderIdentity


class OAuthClient:
    """Provider-side half of the account linking handshake."""

    def is_configured(self) -> bool:
        """Whether client credentials are present.

        Returns:
            True if the client can build URLs and exchange codes
        """
        raise NotImplementedError

    def ensure_configured(self) -> None:
        """Fail fast when client credentials are missing.

        Raises:
            ConfigurationError: If credentials are not configured
        """
        raise NotImplementedError

    def build_authorization_url(self, state: HandshakeState) -> str:
        """Build the consent URL the user opens in a browser.

        Args:
            state: Round-trip state token for CSRF protection

        Returns:
            Authorization URL
        """
        raise NotImplementedError

    async def exchange_code(self, code: str) -> ProviderIdentity:
        """Exchange an authorization code for the user's provider identity.

        Args:
            code: Authorization code from the callback

        Returns:
            Identity reported by the provider

        Raises:
            ProviderError: If the exchange or the profile lookup fails
        """
        raise NotImplementedError
