"""
Unit tests for GS1Client

A scripted transport stands in for the registry so every request the client
makes is counted and inspected.

Author: TM3
Date: 2026-03-02
"""
import json

import pytest

from pim.connectors.gs1.client import GS1Client
from pim.connectors.gs1.strategies import BasicAuthExchangeStrategy, PasswordGrantStrategy, RelayStrategy
from pim.connectors.gs1.token_cache import TokenCache
from pim.core.exceptions import (
    ErrorKind,
    GS1AuthError,
    GS1Error,
    GS1ProtocolError,
    GS1RegistryError,
    GS1TransportError,
    GS1ValidationError,
    http_status_for,
)
from pim.domain.gs1 import RegistrationRequest

TOKEN_BODY = json.dumps({"access_token": "tok-1", "expires_in": 3600})


def v2_strategy():
    return BasicAuthExchangeStrategy(
        host="https://gs1.test",
        client_id="cid",
        client_secret="csecret",
        username="user@example.com",
        password="pw",
        cad="12345",
    )


@pytest.fixture
def client(fake_transport, fake_clock):
    return GS1Client(
        strategy=v2_strategy(),
        transport=fake_transport,
        token_cache=TokenCache(clock=fake_clock, safety_margin_seconds=60),
    )


class TestRegister:
    """Test GS1Client.register"""

    def test_register_success_returns_registry_gtin(self, client, fake_transport, run):
        # Arrange
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(201, json.dumps({
            "gs1TradeItemIdentificationKey": {"gtin": "07891234567895"},
            "gtinStatusCode": "ACTIVE",
        }))

        # Act
        outcome = run(client.register(RegistrationRequest(description="Pote 500ml", gtin="7891234567895")))

        # Assert
        assert outcome.success is True
        assert outcome.gtin == "07891234567895"
        assert outcome.error_message is None
        assert outcome.status == "ACTIVE"
        assert fake_transport.calls == 2
        auth_request, register_request = fake_transport.requests
        assert auth_request.url == "https://gs1.test/oauth/access-token"
        assert register_request.url == "https://gs1.test/gs1/v2/products"
        assert register_request.headers["access_token"] == "tok-1"

    def test_register_without_gtin_lets_registry_assign(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(200, json.dumps({"product": {"gtin": "7890000000017"}}))

        outcome = run(client.register(RegistrationRequest(description="Novo produto")))

        assert outcome.gtin == "7890000000017"
        payload = fake_transport.requests[1].json
        assert payload["gs1TradeItemIdentificationKey"] == {"gs1TradeItemIdentificationKeyCode": "GTIN_13"}

    def test_empty_body_falls_back_to_request_gtin(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(204, "")

        outcome = run(client.register(RegistrationRequest(description="X", gtin="789-1234567895")))

        assert outcome.success is True
        assert outcome.gtin == "7891234567895"
        assert outcome.raw == {}

    def test_token_reused_across_calls(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(201, "{}")
        fake_transport.queue(201, "{}")

        run(client.register(RegistrationRequest(description="A", gtin="7891234567895")))
        run(client.register(RegistrationRequest(description="B", gtin="7891234567895")))

        assert fake_transport.calls == 3
        assert client.token_cache.acquisitions == 1

    def test_token_reacquired_after_expiry(self, client, fake_transport, fake_clock, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(201, "{}")
        fake_transport.queue(200, json.dumps({"access_token": "tok-2", "expires_in": 3600}))
        fake_transport.queue(201, "{}")

        run(client.register(RegistrationRequest(description="A", gtin="7891234567895")))
        fake_clock.advance(3541)
        run(client.register(RegistrationRequest(description="B", gtin="7891234567895")))

        assert fake_transport.calls == 4
        assert fake_transport.requests[3].headers["access_token"] == "tok-2"

    @pytest.mark.parametrize("description", ["", "   "])
    def test_blank_description_fails_before_any_request(self, client, fake_transport, run, description):
        with pytest.raises(GS1ValidationError):
            run(client.register(RegistrationRequest(description=description, gtin="7891234567895")))

        assert fake_transport.calls == 0

    def test_bad_check_digit_fails_before_any_request(self, client, fake_transport, run):
        with pytest.raises(GS1ValidationError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567890")))

        assert "expected 5" in exc_info.value.message
        assert fake_transport.calls == 0

    def test_bad_length_fails_before_any_request(self, client, fake_transport, run):
        with pytest.raises(GS1ValidationError):
            run(client.register(RegistrationRequest(description="X", gtin="12345")))

        assert fake_transport.calls == 0

    def test_password_mode_requires_gtin(self, fake_transport, fake_clock, run):
        client = GS1Client(
            strategy=PasswordGrantStrategy("https://gs1.test", "cid", "cs", "u", "p"),
            transport=fake_transport,
            token_cache=TokenCache(clock=fake_clock),
        )

        with pytest.raises(GS1ValidationError):
            run(client.register(RegistrationRequest(description="X")))

        assert fake_transport.calls == 0


class TestErrorMapping:
    """Test how failures map onto the error taxonomy"""

    def test_auth_rejected(self, client, fake_transport, run):
        fake_transport.queue(401, '{"error": "invalid_client"}')

        with pytest.raises(GS1AuthError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert exc_info.value.kind == ErrorKind.AUTH
        assert exc_info.value.status_code == 401
        assert fake_transport.calls == 1
        assert client.token_cache.get() is None

    def test_auth_response_without_token(self, client, fake_transport, run):
        fake_transport.queue(200, '{"token_type": "bearer"}')

        with pytest.raises(GS1AuthError):
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

    def test_registry_declines_with_message(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(409, json.dumps({"message": "GTIN já cadastrado"}))

        with pytest.raises(GS1RegistryError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        error = exc_info.value
        assert error.message == "GTIN já cadastrado"
        assert error.status_code == 409
        assert http_status_for(error) == 409

    def test_registry_error_without_message_uses_generic_text(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(500, json.dumps({"code": 17}))

        with pytest.raises(GS1RegistryError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert exc_info.value.message == "error 500"
        assert http_status_for(exc_info.value) == 502

    def test_unparsable_error_body_is_protocol_error(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(502, "<html>Bad Gateway</html>")

        with pytest.raises(GS1ProtocolError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert exc_info.value.message.startswith("error 502: <html>")

    def test_unparsable_success_body_is_protocol_error(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(200, "not json")

        with pytest.raises(GS1ProtocolError):
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

    def test_transport_failure_is_not_retried(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.responses.append(GS1TransportError("Timeout contacting GS1"))

        with pytest.raises(GS1TransportError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert fake_transport.calls == 2
        assert http_status_for(exc_info.value) == 504

    def test_registry_401_invalidates_cached_token(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(401, '{"message": "token expired"}')
        fake_transport.queue(200, json.dumps({"access_token": "tok-2", "expires_in": 3600}))
        fake_transport.queue(201, "{}")

        with pytest.raises(GS1AuthError):
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))
        run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert client.token_cache.acquisitions == 2
        assert fake_transport.requests[3].headers["access_token"] == "tok-2"

    def test_raw_excerpt_is_truncated(self):
        error = GS1ProtocolError("bad", status_code=500, raw="x" * 1000)
        assert len(error.raw) <= 301
        assert error.as_dict()["kind"] == "ProtocolError"

    def test_every_error_is_a_gs1_error(self):
        for cls in (GS1ValidationError, GS1AuthError, GS1TransportError, GS1ProtocolError, GS1RegistryError):
            assert issubclass(cls, GS1Error)


class TestFailureEnvelope:
    """Test 2xx bodies that report a rejection"""

    @pytest.fixture
    def relay_client(self, fake_transport, fake_clock):
        return GS1Client(
            strategy=RelayStrategy("https://relay.test/exec", "wrong"),
            transport=fake_transport,
            token_cache=TokenCache(clock=fake_clock),
        )

    def test_relay_register_rejection_raises(self, relay_client, fake_transport, run):
        fake_transport.queue(200, '{"ok": false, "error": "Invalid secret"}')

        with pytest.raises(GS1RegistryError) as exc_info:
            run(relay_client.register(RegistrationRequest(description="X")))

        error = exc_info.value
        assert error.message == "Invalid secret"
        assert error.status_code == 200
        assert http_status_for(error) == 502

    def test_relay_verify_rejection_raises(self, relay_client, fake_transport, run):
        fake_transport.queue(200, '{"ok": false, "error": "Invalid secret"}')

        with pytest.raises(GS1RegistryError) as exc_info:
            run(relay_client.verify("7891234567895"))

        assert exc_info.value.message == "Invalid secret"
        assert fake_transport.calls == 1

    def test_success_flag_false_raises(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(200, json.dumps({"success": False, "message": "Descrição obrigatória"}))

        with pytest.raises(GS1RegistryError) as exc_info:
            run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert exc_info.value.message == "Descrição obrigatória"

    def test_error_entry_next_to_gtin_is_still_success(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(201, json.dumps({"gtin": "7891234567895", "errors": [{"message": "imagem ignorada"}]}))

        outcome = run(client.register(RegistrationRequest(description="X", gtin="7891234567895")))

        assert outcome.success is True
        assert outcome.gtin == "7891234567895"


class TestVerify:
    """Test GS1Client.verify"""

    def test_found_in_own_catalog(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(200, json.dumps({"gtin": "07891234567895", "gtinStatusCode": "ACTIVE"}))

        result = run(client.verify("7891234567895"))

        assert result.found is True
        assert result.source == "own"
        assert result.gtin == "07891234567895"
        assert fake_transport.requests[1].url == "https://gs1.test/gs1/v2/products/07891234567895"

    def test_falls_back_to_public_registry(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(404, "")
        fake_transport.queue(200, json.dumps([{"gtin": "07891234567895", "brandName": "Outra"}]))

        result = run(client.verify("7891234567895"))

        assert result.found is True
        assert result.source == "registry"
        assert result.product["brandName"] == "Outra"
        public_request = fake_transport.requests[2]
        assert public_request.url == "https://gs1.test/gs1/v1/verified"
        assert public_request.params == {"gtin": "07891234567895"}

    def test_not_found_anywhere(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(404, "")
        fake_transport.queue(404, '{"message": "not found"}')

        result = run(client.verify("7891234567895"))

        assert result.found is False
        assert result.source == "registry"

    def test_variant_without_public_lookup(self, fake_transport, fake_clock, run):
        client = GS1Client(
            strategy=RelayStrategy("https://relay.test/exec", "s3cret"),
            transport=fake_transport,
            token_cache=TokenCache(clock=fake_clock),
        )
        fake_transport.queue(404, "")

        result = run(client.verify("7891234567895"))

        assert result.found is False
        assert result.source == "own"
        # Relay auth does no I/O
        assert fake_transport.calls == 1

    def test_found_flag_false(self, client, fake_transport, run):
        fake_transport.queue(200, TOKEN_BODY)
        fake_transport.queue(200, '{"found": false}')

        result = run(client.verify("7891234567895"))

        assert result.found is False

    @pytest.mark.parametrize("identifier", ["", "abc", "123456789012345"])
    def test_bad_identifier_fails_before_any_request(self, client, fake_transport, run, identifier):
        with pytest.raises(GS1ValidationError):
            run(client.verify(identifier))

        assert fake_transport.calls == 0
