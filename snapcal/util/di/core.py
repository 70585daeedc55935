"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from snapcal.config import RegistrationSettings, Settings
from snapcal.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_registration_settings(self, settings: Settings) -> RegistrationSettings:
        """Provide account linking settings."""
        return settings.registration
