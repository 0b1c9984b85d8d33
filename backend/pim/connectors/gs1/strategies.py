"""
GS1 Brasil integration variants

Deployments talk to GS1 Brasil in one of three ways. Each variant knows how
to obtain a credential and how to shape registry requests; the registration
client handles caching, validation and error mapping the same way for all.

- v2        OAuth "access-token" exchange with Basic auth, then /gs1/v2/products
            with Basic + client_id + access_token headers (GS1 manual, 2024-11-29)
- password  OAuth password grant (form-encoded) and Bearer auth on /v1/products
- relay     Calls go through a relay endpoint (Apps Script) that holds the
            GS1 credentials; we only share a secret with it
"""
import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pim.connectors.gs1.token_cache import TokenGrant
from pim.connectors.gs1.transport import HttpRequest, HttpResponse, Transport
from pim.core.exceptions import GS1AuthError, truncate
from pim.domain.gs1 import RegistrationRequest
from pim.domain.gtin import digits_only, to_gtin14

logger = logging.getLogger(__name__)

LANGUAGE_CODE = "pt-BR"
RELAY_TOKEN_TTL = 24 * 3600


def basic_auth(client_id: str, client_secret: str) -> str:
    encoded = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    return f"Basic {encoded}"


def parse_token_response(response: HttpResponse) -> TokenGrant:
    """
    Turn a credential-exchange response into a TokenGrant

    Raises:
        GS1AuthError: Non-2xx, unparsable body, or no access_token in it
    """
    if not response.ok:
        raise GS1AuthError(
            f"GS1 auth failed: {response.status} - {truncate(response.text)}",
            status_code=response.status,
            raw=response.text
        )

    try:
        data = json.loads(response.text)
    except (json.JSONDecodeError, ValueError):
        raise GS1AuthError(
            f"GS1 auth: invalid response - {truncate(response.text, 200)}",
            status_code=response.status,
            raw=response.text
        )

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise GS1AuthError(
            f"Token not returned: {truncate(json.dumps(data), 200)}",
            status_code=response.status,
            raw=response.text
        )

    expires_in = data.get("expires_in")
    try:
        expires_in = int(expires_in) if expires_in is not None else None
    except (TypeError, ValueError):
        expires_in = None

    return TokenGrant(access_token=token, expires_in=expires_in)


class GS1Strategy(ABC):
    """Interface every integration variant implements"""

    name: str = ""
    # Variants that cannot ask the registry to assign a GTIN
    requires_gtin: bool = False

    @abstractmethod
    async def authenticate(self, transport: Transport) -> TokenGrant:
        """Exchange configured service credentials for an access token"""

    @abstractmethod
    def build_payload(self, request: RegistrationRequest) -> Dict[str, Any]:
        """Map a RegistrationRequest onto the registry's product payload"""

    @abstractmethod
    async def submit_registration(
        self, transport: Transport, request: RegistrationRequest, token: str
    ) -> HttpResponse:
        ...

    @abstractmethod
    async def lookup(self, transport: Transport, gtin14: str, token: str) -> HttpResponse:
        """Account-scoped product lookup"""

    async def public_lookup(self, transport: Transport, gtin14: str, token: str) -> Optional[HttpResponse]:
        """Secondary public lookup; None when the variant has none"""
        return None


class BasicAuthExchangeStrategy(GS1Strategy):
    """GS1 Brasil API v2 (Basic auth + access_token header)"""

    name = "v2"

    def __init__(self, host: str, client_id: str, client_secret: str,
                 username: str, password: str, cad: str = ""):
        self.host = host.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.cad = cad

    @property
    def auth_url(self) -> str:
        return f"{self.host}/oauth/access-token"

    @property
    def products_url(self) -> str:
        return f"{self.host}/gs1/v2/products"

    @property
    def verified_url(self) -> str:
        return f"{self.host}/gs1/v1/verified"

    def _registry_headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": basic_auth(self.client_id, self.client_secret),
            "client_id": self.client_id,
            "access_token": token,
            "Content-Type": "application/json",
        }

    async def authenticate(self, transport: Transport) -> TokenGrant:
        if not all([self.client_id, self.client_secret, self.username, self.password]):
            raise GS1AuthError(
                "GS1 credentials not configured. Set GS1_CLIENT_ID, GS1_CLIENT_SECRET, GS1_USERNAME and GS1_PASSWORD"
            )

        response = await transport.send(HttpRequest(
            method="POST",
            url=self.auth_url,
            headers={
                "Authorization": basic_auth(self.client_id, self.client_secret),
                "Content-Type": "application/json",
            },
            json={
                "grant_type": "password",
                "username": self.username,
                "password": self.password,
            },
        ))
        return parse_token_response(response)

    def build_payload(self, request: RegistrationRequest) -> Dict[str, Any]:
        identification: Dict[str, Any] = {"gs1TradeItemIdentificationKeyCode": "GTIN_13"}
        if request.gtin:
            # The key code follows the digit count as typed; the gtin itself always goes padded to 14
            identification = {
                "gs1TradeItemIdentificationKeyCode": f"GTIN_{len(digits_only(request.gtin))}",
                "gtin": to_gtin14(request.gtin),
            }

        payload: Dict[str, Any] = {
            "company": {"cad": self.cad or ""},
            "gtinStatusCode": "ACTIVE",
            "gs1TradeItemIdentificationKey": identification,
            "tradeItemDescriptionInformationLang": [
                {
                    "tradeItemDescription": request.description,
                    "languageCode": LANGUAGE_CODE,
                    "default": True,
                }
            ],
            "brandNameInformationLang": [
                {
                    "brandName": request.brand_name,
                    "languageCode": LANGUAGE_CODE,
                    "default": True,
                }
            ],
            "shareDataIndicator": True,
        }

        classification: Dict[str, Any] = {}
        if request.gpc_code:
            classification["gpcCategoryCode"] = digits_only(request.gpc_code)
        additional = []
        for system_code, value in (("NCM", request.ncm), ("CEST", request.cest)):
            digits = digits_only(value)
            if digits:
                additional.append({
                    "additionalTradeItemClassificationSystemCode": system_code,
                    "additionalTradeItemClassificationCodeValue": digits,
                })
        if additional:
            classification["additionalTradeItemClassifications"] = additional
        if classification:
            payload["tradeItemClassification"] = classification

        if request.image_url:
            payload["referencedFileInformations"] = [
                {
                    "languageCode": LANGUAGE_CODE,
                    "contentDescription": request.description,
                    "uniformResourceIdentifier": request.image_url,
                    "featuredFile": True,
                }
            ]

        measurements: Dict[str, Any] = {}
        if request.net_content is not None:
            measurements["netContent"] = {
                "measurementUnitCode": request.net_content_unit,
                "value": request.net_content,
            }
        weight: Dict[str, Any] = {}
        if request.gross_weight is not None:
            weight["grossWeight"] = {"measurementUnitCode": "KGM", "value": request.gross_weight}
        if request.net_weight is not None:
            weight["netWeight"] = {"measurementUnitCode": "KGM", "value": request.net_weight}
        if weight:
            measurements["tradeItemWeight"] = weight
        if measurements:
            payload["tradeItemMeasurements"] = measurements

        if request.origin:
            payload["placeOfProductActivity"] = {
                "countryOfOrigin": {"countryCode": request.origin}
            }

        return payload

    async def submit_registration(self, transport: Transport, request: RegistrationRequest, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="POST",
            url=self.products_url,
            headers=self._registry_headers(token),
            json=self.build_payload(request),
        ))

    async def lookup(self, transport: Transport, gtin14: str, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="GET",
            url=f"{self.products_url}/{gtin14}",
            headers=self._registry_headers(token),
        ))

    async def public_lookup(self, transport: Transport, gtin14: str, token: str) -> Optional[HttpResponse]:
        return await transport.send(HttpRequest(
            method="GET",
            url=self.verified_url,
            headers=self._registry_headers(token),
            params={"gtin": gtin14},
        ))


class PasswordGrantStrategy(GS1Strategy):
    """OAuth2 password grant (form-encoded) with Bearer auth on the v1 API"""

    name = "password"
    requires_gtin = True

    def __init__(self, host: str, client_id: str, client_secret: str,
                 username: str, password: str, cad: str = ""):
        self.host = host.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.cad = cad

    @property
    def auth_url(self) -> str:
        return f"{self.host}/oauth/token"

    @property
    def products_url(self) -> str:
        return f"{self.host}/v1/products"

    async def authenticate(self, transport: Transport) -> TokenGrant:
        if not all([self.client_id, self.client_secret, self.username, self.password]):
            raise GS1AuthError(
                "GS1 credentials not configured. Set GS1_CLIENT_ID, GS1_CLIENT_SECRET, GS1_USERNAME and GS1_PASSWORD"
            )

        response = await transport.send(HttpRequest(
            method="POST",
            url=self.auth_url,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            form={
                "grant_type": "password",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "username": self.username,
                "password": self.password,
                "scope": "openid",
            },
        ))
        return parse_token_response(response)

    def build_payload(self, request: RegistrationRequest) -> Dict[str, Any]:
        payload = {
            "gtin": digits_only(request.gtin),
            "descricao": request.description,
            "sku": request.sku or "",
            "ncm": digits_only(request.ncm),
            "cest": digits_only(request.cest),
            "cad": self.cad,
            "tipo": "PRODUTO_COMERCIALIZADO",
            "marca": request.brand_name,
            "unidadeMedida": "UN",
        }
        if request.image_url:
            payload["imagemURL"] = request.image_url
        return payload

    def _headers(self, token: str) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }

    async def submit_registration(self, transport: Transport, request: RegistrationRequest, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="POST",
            url=self.products_url,
            headers=self._headers(token),
            json=self.build_payload(request),
        ))

    async def lookup(self, transport: Transport, gtin14: str, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="GET",
            url=f"{self.products_url}/{gtin14}",
            headers=self._headers(token),
        ))


class RelayStrategy(GS1Strategy):
    """
    Relay-through-third-party variant

    The relay owns the GS1 credentials. The shared secret is our only
    credential, so authenticate() does no I/O and hands back the secret
    with a long fixed TTL.
    """

    name = "relay"

    def __init__(self, relay_url: str, shared_secret: str, cad: str = ""):
        self.relay_url = relay_url
        self.shared_secret = shared_secret
        self.cad = cad

    async def authenticate(self, transport: Transport) -> TokenGrant:
        if not self.relay_url or not self.shared_secret:
            raise GS1AuthError("GS1 relay not configured. Set GS1_RELAY_URL and GS1_RELAY_SECRET")
        return TokenGrant(access_token=self.shared_secret, expires_in=RELAY_TOKEN_TTL)

    def build_payload(self, request: RegistrationRequest) -> Dict[str, Any]:
        payload = {
            "nome": request.description,
            "marca": request.brand_name,
            "ncm": digits_only(request.ncm),
            "cest": digits_only(request.cest),
            "cad": self.cad,
        }
        if request.gtin:
            payload["ean"] = digits_only(request.gtin)
        if request.image_url:
            payload["imagemURL"] = request.image_url
        return payload

    async def submit_registration(self, transport: Transport, request: RegistrationRequest, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="POST",
            url=self.relay_url,
            headers={"Content-Type": "application/json"},
            json={"secret": token, "action": "register", "product": self.build_payload(request)},
        ))

    async def lookup(self, transport: Transport, gtin14: str, token: str) -> HttpResponse:
        return await transport.send(HttpRequest(
            method="POST",
            url=self.relay_url,
            headers={"Content-Type": "application/json"},
            json={"secret": token, "action": "verify", "gtin": gtin14},
        ))


def build_strategy(config) -> GS1Strategy:
    """
    Build the strategy selected by GS1_MODE

    Args:
        config: Settings-like object with the GS1_* attributes

    Raises:
        ValueError: Unknown GS1_MODE
    """
    mode = (config.GS1_MODE or "v2").strip().lower()

    if mode == "v2":
        return BasicAuthExchangeStrategy(
            host=config.GS1_HOST,
            client_id=config.GS1_CLIENT_ID,
            client_secret=config.GS1_CLIENT_SECRET,
            username=config.GS1_USERNAME,
            password=config.GS1_PASSWORD,
            cad=config.GS1_CAD,
        )
    if mode == "password":
        return PasswordGrantStrategy(
            host=config.GS1_HOST,
            client_id=config.GS1_CLIENT_ID,
            client_secret=config.GS1_CLIENT_SECRET,
            username=config.GS1_USERNAME,
            password=config.GS1_PASSWORD,
            cad=config.GS1_CAD,
        )
    if mode == "relay":
        return RelayStrategy(
            relay_url=config.GS1_RELAY_URL,
            shared_secret=config.GS1_RELAY_SECRET,
            cad=config.GS1_CAD,
        )

    raise ValueError(f"Unknown GS1_MODE '{config.GS1_MODE}'. Use v2, password or relay")
