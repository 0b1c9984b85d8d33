"""
GS1 Brasil Registration Client

Validates the product, reuses (or acquires) an access token, calls the
registry through the configured strategy and normalizes the answer.

Handles:
- Fail-fast validation (description, GTIN check digit) before any I/O
- Token caching with expiry safety margin
- Registration and verification, including the secondary public lookup
- Mapping transport/HTTP/body problems onto the GS1Error taxonomy

Nothing is retried here: each call succeeds or fails exactly once.
"""
import json
import logging
from typing import Any, Optional

from pim.connectors.gs1.extraction import (
    extract_error_message,
    extract_gtin,
    extract_status,
    is_failure_envelope,
)
from pim.connectors.gs1.strategies import GS1Strategy, build_strategy
from pim.connectors.gs1.token_cache import AccessToken, TokenCache
from pim.connectors.gs1.transport import HttpResponse, HttpxTransport, Transport
from pim.core.exceptions import (
    GS1AuthError,
    GS1ProtocolError,
    GS1RegistryError,
    GS1ValidationError,
    truncate,
)
from pim.domain.gs1 import RegistrationOutcome, RegistrationRequest, VerificationResult
from pim.domain.gtin import digits_only, to_gtin14, validate

logger = logging.getLogger(__name__)


class GS1Client:
    """
    Registration/verification client for the GS1 Brasil registry

    Args:
        strategy: Integration variant (v2, password grant, relay)
        transport: HTTP transport (HttpxTransport by default)
        token_cache: Token cache (a fresh TokenCache by default)
    """

    def __init__(self, strategy: GS1Strategy, transport: Optional[Transport] = None,
                 token_cache: Optional[TokenCache] = None):
        self.strategy = strategy
        self.transport = transport or HttpxTransport()
        self.token_cache = token_cache or TokenCache()

    async def get_token(self) -> AccessToken:
        """Cached access token, acquired on first need or after expiry"""
        return await self.token_cache.get_or_acquire(
            lambda: self.strategy.authenticate(self.transport)
        )

    # ==================== VALIDATION ====================

    def _validate_registration(self, request: RegistrationRequest) -> RegistrationRequest:
        description = (request.description or "").strip()
        if not description:
            raise GS1ValidationError("Product description is required.")

        gtin = (request.gtin or "").strip()
        if gtin:
            result = validate(gtin)
            if result.reason == "length":
                raise GS1ValidationError(
                    f"EAN/GTIN must have 8, 12, 13 or 14 digits (got {result.length})."
                )
            if not result.valid:
                raise GS1ValidationError(
                    f"Invalid EAN/GTIN check digit: expected {result.expected}, got {result.got}."
                )
        elif self.strategy.requires_gtin:
            raise GS1ValidationError("EAN/GTIN is required to register with GS1.")

        return request.model_copy(update={
            "description": description,
            "gtin": digits_only(gtin) or None,
        })

    # ==================== RESPONSE HANDLING ====================

    def _parse_body(self, response: HttpResponse) -> Any:
        """
        Parse a 2xx JSON body; empty bodies read as {}

        A body reporting a rejection (e.g. {"ok": false, "error": ...}) is
        raised as GS1RegistryError even though the status was 2xx.
        """
        if not response.text or not response.text.strip():
            return {}
        try:
            body = json.loads(response.text)
        except (json.JSONDecodeError, ValueError):
            raise GS1ProtocolError(
                f"GS1 returned an unparsable response (HTTP {response.status}).",
                status_code=response.status,
                raw=response.text
            )

        if is_failure_envelope(body):
            message = extract_error_message(body, response.status)
            logger.warning(f"GS1 ({self.strategy.name}) rejected the call with HTTP {response.status}: {message}")
            raise GS1RegistryError(message, status_code=response.status, raw=response.text)

        return body

    def _raise_for_status(self, response: HttpResponse) -> None:
        """Map a non-2xx registry response onto the error taxonomy"""
        if response.ok:
            return

        if response.status == 401:
            # Stale or revoked token; next call re-authenticates
            self.token_cache.invalidate()
            raise GS1AuthError(
                "GS1 rejected the access token.",
                status_code=response.status,
                raw=response.text
            )

        try:
            body = json.loads(response.text)
        except (json.JSONDecodeError, ValueError, TypeError):
            body = None

        if isinstance(body, dict):
            raise GS1RegistryError(
                extract_error_message(body, response.status),
                status_code=response.status,
                raw=response.text
            )

        raise GS1ProtocolError(
            f"error {response.status}: {truncate(response.text)}",
            status_code=response.status,
            raw=response.text
        )

    # ==================== OPERATIONS ====================

    async def register(self, request: RegistrationRequest) -> RegistrationOutcome:
        """
        Register a product at the registry

        Args:
            request: Product attributes; gtin None lets the registry assign one

        Returns:
            RegistrationOutcome with the assigned/confirmed GTIN (None if the
            response carried none and none was supplied)

        Raises:
            GS1Error subclass on any failure
        """
        request = self._validate_registration(request)
        token = await self.get_token()

        logger.info(
            f"Registering product at GS1 ({self.strategy.name}): "
            f"gtin={request.gtin or 'registry-assigned'}"
        )
        response = await self.strategy.submit_registration(self.transport, request, token.value)
        self._raise_for_status(response)
        body = self._parse_body(response)

        gtin = extract_gtin(body) or request.gtin
        status = extract_status(body)
        logger.info(f"GS1 registration succeeded: gtin={gtin} status={status}")

        return RegistrationOutcome(
            success=True,
            gtin=gtin,
            status=status,
            raw=body if isinstance(body, dict) else {"data": body},
        )

    async def verify(self, identifier: str) -> VerificationResult:
        """
        Look an identifier up at the registry

        A 404 is a valid negative answer. When the account-scoped lookup
        misses, the secondary public lookup (if the variant has one) decides.
        """
        digits = digits_only(identifier)
        if not digits:
            raise GS1ValidationError("EAN/GTIN is required.")
        if len(digits) > 14:
            raise GS1ValidationError(f"EAN/GTIN must have at most 14 digits (got {len(digits)}).")

        gtin14 = to_gtin14(digits)
        token = await self.get_token()

        response = await self.strategy.lookup(self.transport, gtin14, token.value)
        if response.status != 404:
            self._raise_for_status(response)
            product = self._product_from(self._parse_body(response))
            return VerificationResult(found=product is not None, source="own", gtin=gtin14, product=product)

        logger.info(f"GTIN {gtin14} not found in own GS1 catalog")
        secondary = await self.strategy.public_lookup(self.transport, gtin14, token.value)
        if secondary is None:
            return VerificationResult(found=False, source="own", gtin=gtin14)

        if secondary.status == 404:
            return VerificationResult(found=False, source="registry", gtin=gtin14)

        self._raise_for_status(secondary)
        product = self._product_from(self._parse_body(secondary))
        return VerificationResult(found=product is not None, source="registry", gtin=gtin14, product=product)

    @staticmethod
    def _product_from(body: Any) -> Optional[dict]:
        """Pick the product record out of a lookup body, None when empty"""
        if isinstance(body, list):
            body = body[0] if body else None
        if not isinstance(body, dict) or not body:
            return None
        if isinstance(body.get("found"), bool):
            return (body.get("product") or body) if body["found"] else None
        for key in ("products", "items"):
            items = body.get(key)
            if isinstance(items, list):
                return items[0] if items and isinstance(items[0], dict) else None
        return body


# Singleton instance for easy import
_gs1_client: Optional[GS1Client] = None


def get_gs1_client() -> GS1Client:
    """Get the process-wide GS1 client (one token cache per process)"""
    global _gs1_client
    if _gs1_client is None:
        from pim.core.config import settings
        _gs1_client = GS1Client(
            strategy=build_strategy(settings),
            transport=HttpxTransport(timeout=settings.GS1_HTTP_TIMEOUT),
            token_cache=TokenCache(safety_margin_seconds=settings.GS1_TOKEN_SAFETY_MARGIN),
        )
    return _gs1_client
