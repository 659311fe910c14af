# salon/whatsapp.py

"""
WhatsApp transport.

Two providers, picked with WHATSAPP_PROVIDER:
  - "evolution" -> Evolution API (self-hosted)
  - "meta"      -> Meta Cloud API

Providers never raise on delivery problems; they report them in SendResult
so the caller decides whether to retry.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from . import config

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    external_id: Optional[str] = None
    error: Optional[str] = None


class WhatsAppProvider:
    name = "base"

    def __init__(self, timeout: float = config.WHATSAPP_TIMEOUT_SECONDS, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport, **kwargs)

    async def send_text(self, to: str, body: str) -> SendResult:
        raise NotImplementedError


class EvolutionProvider(WhatsAppProvider):
    name = "evolution"

    def __init__(self, base_url=None, api_key=None, instance=None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or config.EVOLUTION_API_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else config.EVOLUTION_API_KEY
        self.instance = instance or config.EVOLUTION_INSTANCE

    async def send_text(self, to: str, body: str) -> SendResult:
        try:
            async with self._client(headers={"apikey": self.api_key}) as client:
                res = await client.post(
                    f"{self.base_url}/message/sendText/{self.instance}",
                    json={"number": to.lstrip("+"), "text": body},
                )
        except httpx.HTTPError as exc:
            logger.warning("Evolution API request failed: %s", exc)
            return SendResult(success=False, error=repr(exc))

        if res.is_error:
            return SendResult(success=False, error=f"Evolution API error {res.status_code}: {res.text}")

        try:
            data = res.json()
        except ValueError:
            data = {}
        external_id = (data.get("key") or {}).get("id") or data.get("id")
        return SendResult(success=True, external_id=external_id)


class MetaProvider(WhatsAppProvider):
    name = "meta"
    graph_url = "https://graph.facebook.com/v20.0"

    def __init__(self, token=None, phone_number_id=None, **kwargs):
        super().__init__(**kwargs)
        self.token = token if token is not None else config.META_WHATSAPP_TOKEN
        self.phone_number_id = phone_number_id or config.META_PHONE_NUMBER_ID

    async def send_text(self, to: str, body: str) -> SendResult:
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to,
            "type": "text",
            "text": {"preview_url": False, "body": body},
        }
        try:
            async with self._client(headers={"Authorization": f"Bearer {self.token}"}) as client:
                res = await client.post(f"{self.graph_url}/{self.phone_number_id}/messages", json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Meta API request failed: %s", exc)
            return SendResult(success=False, error=repr(exc))

        if res.is_error:
            return SendResult(success=False, error=f"Meta API error {res.status_code}: {res.text}")

        try:
            messages = res.json().get("messages") or [{}]
        except ValueError:
            messages = [{}]
        return SendResult(success=True, external_id=messages[0].get("id"))


PROVIDERS = {
    EvolutionProvider.name: EvolutionProvider,
    MetaProvider.name: MetaProvider,
}


def get_provider(name: Optional[str] = None) -> WhatsAppProvider:
    name = (name or config.WHATSAPP_PROVIDER).lower()
    provider_cls = PROVIDERS.get(name, EvolutionProvider)
    logger.info("Using WhatsApp provider %s", provider_cls.name)
    return provider_cls()
