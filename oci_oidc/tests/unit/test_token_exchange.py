"""
Tests for the JWT to UPST token exchange client.
"""

from unittest import mock

import pytest
import requests

from oci_oidc.exceptions import TokenExchangeError
from oci_oidc.tests.helpers import FakePlatform, TOKEN_URL, make_jwt, make_response
from oci_oidc.token_exchange import (
    GRANT_TYPE,
    REQUESTED_TOKEN_TYPE,
    TokenExchangeClient,
    TokenExchangeRequest,
    describe_subject_token,
)

CLIENT_CRED = "dGVzdC1jbGllbnQtaWQ="


@pytest.fixture
def request_factory():
    def factory(retry_count=3, subject_token="test-jwt-token"):
        return TokenExchangeRequest(
            token_exchange_url=TOKEN_URL,
            client_cred=CLIENT_CRED,
            public_key="cHVibGljLWtleS1kZXI=",
            subject_token=subject_token,
            retry_count=retry_count,
        )

    return factory


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def sleep():
    return mock.Mock()


@pytest.fixture
def client(fake_platform, session, sleep):
    return TokenExchangeClient(fake_platform, session=session, sleep=sleep)


class TestExchange:
    """Request shape and success handling."""

    def test_successful_exchange(self, client, session, sleep, request_factory):
        session.post.return_value = make_response(200, {"token": "mocked-upst-token"})
        request = request_factory()

        assert client.exchange(request) == "mocked-upst-token"

        session.post.assert_called_once_with(
            TOKEN_URL,
            data={
                "grant_type": GRANT_TYPE,
                "requested_token_type": REQUESTED_TOKEN_TYPE,
                "public_key": request.public_key,
                "subject_token": request.subject_token,
                "subject_token_type": "jwt",
            },
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Authorization": f"Basic {CLIENT_CRED}",
            },
            timeout=client.timeout,
        )
        sleep.assert_not_called()

    def test_grant_constants(self):
        assert GRANT_TYPE == "urn:ietf:params:oauth:grant-type:token-exchange"
        assert REQUESTED_TOKEN_TYPE == "urn:oci:token-type:oci-upst"

    def test_uses_requests_module_without_session(self, fake_platform, request_factory):
        with mock.patch(
            "oci_oidc.token_exchange.requests.post",
            return_value=make_response(200, {"token": "module-token"}),
        ) as mock_post:
            client = TokenExchangeClient(fake_platform, sleep=mock.Mock())
            assert client.exchange(request_factory(retry_count=0)) == "module-token"
        mock_post.assert_called_once()


class TestRetries:
    """Bounded retry loop with linear backoff."""

    def test_retry_then_success(self, client, session, sleep, fake_platform, request_factory):
        session.post.side_effect = [
            requests.ConnectionError("Network error"),
            make_response(200, {"token": "mocked-upst-token-after-retry"}),
        ]
        request = request_factory()

        assert client.exchange(request) == "mocked-upst-token-after-retry"
        assert session.post.call_count == 2
        assert request.current_attempt == 1
        sleep.assert_called_once_with(1)
        warnings = fake_platform.logger.messages["warning"]
        assert len(warnings) == 1
        assert "retrying in 1s" in warnings[0]
        assert "3 retries remaining" in warnings[0]

    @pytest.mark.parametrize("retry_count", [0, 1, 3])
    def test_permanent_failure_makes_retry_count_plus_one_attempts(
        self, client, session, sleep, request_factory, retry_count
    ):
        session.post.side_effect = requests.ConnectionError("API rate limit exceeded")

        with pytest.raises(TokenExchangeError, match="API rate limit exceeded") as exc_info:
            client.exchange(request_factory(retry_count=retry_count))

        assert session.post.call_count == retry_count + 1
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
        assert "API rate limit exceeded" in str(exc_info.value.__cause__)
        assert [c.args[0] for c in sleep.call_args_list] == list(range(1, retry_count + 1))

    def test_success_on_last_allowed_attempt(self, client, session, request_factory):
        session.post.side_effect = [
            make_response(503, {"error": "unavailable"}),
            make_response(503, {"error": "unavailable"}),
            make_response(200, {"token": "late-token"}),
        ]
        assert client.exchange(request_factory(retry_count=2)) == "late-token"
        assert session.post.call_count == 3

    def test_http_error_is_retried_and_wrapped(self, client, session, request_factory):
        session.post.return_value = make_response(401, {"error": "invalid_client"})

        with pytest.raises(TokenExchangeError, match="401 Client Error") as exc_info:
            client.exchange(request_factory(retry_count=1))

        assert session.post.call_count == 2
        assert isinstance(exc_info.value.__cause__, requests.HTTPError)

    @pytest.mark.parametrize(
        "body",
        [{"access_token": "wrong-field"}, {"token": ""}, {"token": None}, ["token"], "not json"],
    )
    def test_response_without_token_never_succeeds(self, client, session, request_factory, body):
        session.post.return_value = make_response(200, body)

        with pytest.raises(TokenExchangeError):
            client.exchange(request_factory(retry_count=0))


class TestDebugLogging:
    """Debug-only diagnostics never expose secrets."""

    def test_no_debug_output_by_default(self, client, session, fake_platform, request_factory):
        session.post.return_value = make_response(200, {"token": "secret-upst"})
        client.exchange(request_factory())
        assert fake_platform.logger.messages["debug"] == []

    def test_error_body_only_logged_in_debug(self, client, session, fake_platform, request_factory):
        session.post.return_value = make_response(400, {"error": "invalid_grant", "detail": "body-secret"})

        with pytest.raises(TokenExchangeError):
            client.exchange(request_factory(retry_count=0))

        assert fake_platform.logger.messages["debug"] == []
        assert "body-secret" not in fake_platform.logger.all_text()

    def test_error_body_logged_in_debug(self, session, sleep, request_factory):
        platform = FakePlatform(debug=True)
        client = TokenExchangeClient(platform, session=session, sleep=sleep)
        session.post.return_value = make_response(400, {"error": "invalid_grant"})

        with pytest.raises(TokenExchangeError):
            client.exchange(request_factory(retry_count=0))

        assert any("Token Exchange Error Body" in m for m in platform.logger.messages["debug"])

    def test_debug_output_redacts_tokens(self, session, sleep, request_factory):
        platform = FakePlatform(debug=True)
        client = TokenExchangeClient(platform, session=session, sleep=sleep)
        subject_token = make_jwt({"sub": "repo:example-org/example-repo:environment:production"})
        session.post.return_value = make_response(200, {"token": "secret-upst"})

        client.exchange(request_factory(subject_token=subject_token))

        debug_text = "\n".join(platform.logger.messages["debug"])
        assert "Token Exchange Request Data" in debug_text
        assert "Token Exchange Response" in debug_text
        assert "token.actions.githubusercontent.com" in debug_text
        assert "test-key" in debug_text
        assert subject_token not in platform.logger.all_text()
        assert "secret-upst" not in platform.logger.all_text()
        assert "environment:production" not in debug_text

    def test_malformed_subject_token_does_not_abort(self, session, sleep, request_factory):
        platform = FakePlatform(debug=True)
        client = TokenExchangeClient(platform, session=session, sleep=sleep)
        session.post.return_value = make_response(200, {"token": "upst"})

        assert client.exchange(request_factory(subject_token="not-a-jwt")) == "upst"
        assert any(
            "structure check failed" in m for m in platform.logger.messages["debug"]
        )


class TestDescribeSubjectToken:
    def test_safe_claims(self):
        token = make_jwt({"sub": "repo:example-org/example-repo:ref:refs/heads/main"})
        details = describe_subject_token(token)

        assert details["iss"] == "https://token.actions.githubusercontent.com"
        assert details["kid"] == "test-key"
        assert details["aud"] == "https://cloud.oracle.com"
        assert details["exp"] > details["iat"]
        assert details["sub"].endswith("...")
        assert len(details["sub"]) < len("repo:example-org/example-repo:ref:refs/heads/main")

    @pytest.mark.parametrize("token", ["one.two", "a.b.c.d", ""])
    def test_wrong_segment_count(self, token):
        with pytest.raises(ValueError, match="3 segments"):
            describe_subject_token(token)

    def test_undecodable_segments(self):
        with pytest.raises(ValueError, match="could not be decoded"):
            describe_subject_token("!!!.@@@.###")
