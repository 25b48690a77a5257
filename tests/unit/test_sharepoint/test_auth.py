"""Tests for SharePoint authentication service."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest
import requests

from filestore.config import SharePointConfig
from filestore.core.exceptions import ConfigurationError, FilestoreError, TransportError
from filestore.core.sharepoint.auth import SharePointAuthService, site_scopes
from filestore.core.sharepoint.exceptions import SharePointAuthenticationError


@pytest.fixture
def config():
    return SharePointConfig(
        site_url="https://contoso.sharepoint.com/sites/docs",
        username="user@contoso.com",
        password="secret",
        client_id="test-client-id-12345678",
    )


@pytest.fixture
def mock_msal():
    """Patch MSAL's PublicClientApplication with a logged-out app."""
    with patch("msal.PublicClientApplication") as mock_msal_class:
        app = mock_msal_class.return_value
        app.get_accounts.return_value = []
        app.acquire_token_by_username_password.return_value = {
            "access_token": "fresh_token",
            "expires_in": 3600,
            "token_type": "Bearer",
        }
        yield mock_msal_class, app


class TestSiteScopes:
    """Tests for site_scopes helper."""

    def test_scope_is_site_origin(self):
        """Scope is the tenant origin plus /.default."""
        scopes = site_scopes("https://contoso.sharepoint.com/sites/docs")

        assert scopes == ["https://contoso.sharepoint.com/.default"]

    def test_invalid_url_raises(self):
        """URLs without scheme or host are a configuration error."""
        with pytest.raises(ConfigurationError, match="Invalid"):
            site_scopes("contoso/sites/docs")


class TestSharePointAuthServiceInit:
    """Tests for SharePointAuthService initialization."""

    def test_init_does_not_create_msal_app(self, config, mock_msal):
        """Construction is lazy and does not touch MSAL."""
        mock_msal_class, _ = mock_msal

        service = SharePointAuthService(config)

        mock_msal_class.assert_not_called()
        assert service._msal_app is None
        assert service.site_url == "https://contoso.sharepoint.com/sites/docs"
        assert service.config is config


class TestGetToken:
    """Tests for get_token method."""

    def test_creates_msal_app_on_first_call(self, config, mock_msal):
        """First token request creates the PublicClientApplication."""
        mock_msal_class, _ = mock_msal
        service = SharePointAuthService(config)

        service.get_token()

        mock_msal_class.assert_called_once_with(
            client_id="test-client-id-12345678",
            authority="https://login.microsoftonline.com/organizations",
        )

    def test_reuses_msal_app(self, config, mock_msal):
        """The MSAL app (and its token cache) is created once."""
        mock_msal_class, _ = mock_msal
        service = SharePointAuthService(config)

        service.get_token()
        service.get_token()

        assert mock_msal_class.call_count == 1

    def test_password_flow_when_no_cached_account(self, config, mock_msal):
        """Without a cached account the username/password flow is used."""
        _, app = mock_msal
        service = SharePointAuthService(config)

        token = service.get_token()

        assert token == "fresh_token"
        app.acquire_token_by_username_password.assert_called_once_with(
            username="user@contoso.com",
            password="secret",
            scopes=["https://contoso.sharepoint.com/.default"],
        )
        app.acquire_token_silent.assert_not_called()

    def test_returns_cached_token(self, config, mock_msal):
        """A cached token for the account is returned without logging in."""
        _, app = mock_msal
        account = {"username": "user@contoso.com"}
        app.get_accounts.return_value = [account]
        app.acquire_token_silent.return_value = {"access_token": "cached_token"}
        service = SharePointAuthService(config)

        token = service.get_token()

        assert token == "cached_token"
        app.get_accounts.assert_called_once_with(username="user@contoso.com")
        app.acquire_token_silent.assert_called_once_with(
            scopes=["https://contoso.sharepoint.com/.default"],
            account=account,
        )
        app.acquire_token_by_username_password.assert_not_called()

    def test_falls_back_when_silent_fails(self, config, mock_msal):
        """An empty silent result falls back to the password flow."""
        _, app = mock_msal
        app.get_accounts.return_value = [{"username": "user@contoso.com"}]
        app.acquire_token_silent.return_value = None
        service = SharePointAuthService(config)

        token = service.get_token()

        assert token == "fresh_token"
        app.acquire_token_by_username_password.assert_called_once()

    def test_error_result_raises(self, config, mock_msal):
        """MSAL error results raise SharePointAuthenticationError."""
        _, app = mock_msal
        app.acquire_token_by_username_password.return_value = {
            "error": "invalid_grant",
            "error_description": "AADSTS50126: Invalid username or password.",
        }
        service = SharePointAuthService(config)

        with pytest.raises(SharePointAuthenticationError) as exc_info:
            service.get_token()

        assert "invalid_grant" in str(exc_info.value)

    def test_null_result_raises(self, config, mock_msal):
        """A None result raises SharePointAuthenticationError."""
        _, app = mock_msal
        app.acquire_token_by_username_password.return_value = None
        service = SharePointAuthService(config)

        with pytest.raises(SharePointAuthenticationError, match="no result"):
            service.get_token()

    def test_missing_access_token_raises(self, config, mock_msal):
        """A result without access_token raises SharePointAuthenticationError."""
        _, app = mock_msal
        app.acquire_token_by_username_password.return_value = {"token_type": "Bearer"}
        service = SharePointAuthService(config)

        with pytest.raises(SharePointAuthenticationError, match="access_token"):
            service.get_token()

    def test_msal_value_error_is_wrapped(self, config, mock_msal):
        """MSAL configuration errors surface as SharePointAuthenticationError."""
        _, app = mock_msal
        app.acquire_token_by_username_password.side_effect = ValueError(
            "Unable to get authority configuration"
        )
        service = SharePointAuthService(config)

        with pytest.raises(SharePointAuthenticationError) as exc_info:
            service.get_token()

        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_malformed_site_url_raises_configuration_error(self, mock_msal):
        """A site URL without scheme fails before MSAL is touched."""
        mock_msal_class, _ = mock_msal
        service = SharePointAuthService(
            SharePointConfig(site_url="contoso/sites/docs", username="u", password="p")
        )

        with pytest.raises(ConfigurationError):
            service.get_token()

        mock_msal_class.assert_not_called()

    def test_login_network_failure_raises_transport_error(self, config, mock_msal):
        """Connection failures during login become TransportError."""
        _, app = mock_msal
        cause = requests.exceptions.ConnectionError("Name or service not known")
        app.acquire_token_by_username_password.side_effect = cause
        service = SharePointAuthService(config)

        with pytest.raises(TransportError) as exc_info:
            service.get_token()

        assert isinstance(exc_info.value, FilestoreError)
        assert exc_info.value.__cause__ is cause

    def test_authority_discovery_failure_raises_transport_error(self, config, mock_msal):
        """MSAL app creation performs discovery; its network errors are mapped."""
        mock_msal_class, _ = mock_msal
        mock_msal_class.side_effect = requests.exceptions.ConnectTimeout("timed out")
        service = SharePointAuthService(config)

        with pytest.raises(TransportError, match="login.microsoftonline.com"):
            service.get_token()

        assert service._msal_app is None

    def test_silent_refresh_network_failure_raises_transport_error(
        self, config, mock_msal
    ):
        """Network errors while refreshing a cached token are mapped."""
        _, app = mock_msal
        app.get_accounts.return_value = [{"username": "user@contoso.com"}]
        app.acquire_token_silent.side_effect = requests.exceptions.ConnectionError(
            "refused"
        )
        service = SharePointAuthService(config)

        with pytest.raises(TransportError):
            service.get_token()

    def test_network_failure_releases_lock(self, config, mock_msal):
        """A failed login does not block the next attempt."""
        _, app = mock_msal
        app.acquire_token_by_username_password.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            {"access_token": "fresh_token"},
        ]
        service = SharePointAuthService(config)

        with pytest.raises(TransportError):
            service.get_token()

        assert service.get_token() == "fresh_token"

    def test_concurrent_first_use_creates_one_app(self, config, mock_msal):
        """Concurrent callers share one MSAL app and one login at a time."""
        mock_msal_class, app = mock_msal
        in_flight = []
        overlaps = []

        def login(**kwargs):
            in_flight.append(1)
            if len(in_flight) > 1:
                overlaps.append(True)
            in_flight.pop()
            return {"access_token": "fresh_token"}

        app.acquire_token_by_username_password.side_effect = login
        service = SharePointAuthService(config)

        with ThreadPoolExecutor(max_workers=8) as pool:
            tokens = list(pool.map(lambda _: service.get_token(), range(16)))

        assert tokens == ["fresh_token"] * 16
        assert mock_msal_class.call_count == 1
        assert overlaps == []

    def test_password_is_not_logged(self, config, mock_msal):
        """Neither the password nor the token appears in log output."""
        from structlog.testing import capture_logs

        service = SharePointAuthService(config)

        with capture_logs() as logs:
            service.get_token()

        rendered = repr(logs)
        assert "secret" not in rendered
        assert "fresh_token" not in rendered


def test_service_is_independent_per_config(mock_msal):
    """Separate configs get separate MSAL apps."""
    mock_msal_class, _ = mock_msal
    first = SharePointAuthService(
        SharePointConfig(site_url="https://a.sharepoint.com", username="u", password="p")
    )
    second = SharePointAuthService(
        SharePointConfig(site_url="https://b.sharepoint.com", username="u", password="p")
    )

    first.get_token()
    second.get_token()

    assert mock_msal_class.call_count == 2
    assert isinstance(first._msal_app, MagicMock)
