"""Tests for provider selection."""

import pytest

from snapcal.util.di import (
    GoogleProvider,
    PersistenceProvider,
    ProdConfigProvider,
    ProdGoogleProvider,
    ProdPersistenceProvider,
    get_provider,
)
from snapcal.util.di.base import ProviderBase
from snapcal.util.error import DependencyInjectionError
from tests.di import MockGoogleProvider, MockPersistenceProvider, build_test_container


class TestGetProvider:
    """Tests for get_provider."""

    def test_concrete_provider_used_as_is(self):
        """Should return a provider without implementations unchanged."""
        assert get_provider(ProdConfigProvider) is ProdConfigProvider

    def test_selects_by_mock_flag(self):
        """Should pick the production or mock implementation."""
        assert get_provider(GoogleProvider) is ProdGoogleProvider
        assert get_provider(GoogleProvider, use_mock=True) is MockGoogleProvider
        assert get_provider(PersistenceProvider) is ProdPersistenceProvider
        assert get_provider(PersistenceProvider, use_mock=True) is MockPersistenceProvider

    def test_missing_implementation(self):
        """Should raise when a component has no implementation of the kind."""

        class LonelyProvider(ProviderBase):
            __mock_component__ = "google"

        class OnlyProd(LonelyProvider):
            __is_mock__ = False

        with pytest.raises(DependencyInjectionError):
            get_provider(LonelyProvider, use_mock=True)


class TestBuildTestContainer:
    """Tests for the test container builder."""

    def test_rejects_unknown_component(self):
        """Should refuse to unmock a component nobody declares."""
        with pytest.raises(ValueError):
            build_test_container({"slack"})
