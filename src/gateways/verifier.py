"""HTTP verifier gateway (verifications management API).

- POST {base}            → {"id", "verification_url"}
- GET  {base}/{id}       → {"state", "wallet_response": {"credential_subject_data"}}

verification_url служит challenge'ем: вызывающий код рендерит его как QR.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence
from urllib.parse import quote

import requests

from src.core.config import GatewaySettings
from src.core.domain.verification import AttributeRequirement, GatewaySessionState
from src.core.errors import GatewayError
from src.verification.presentation import build_presentation_request

from .base import CreatedSession

logger = logging.getLogger(__name__)


class HttpVerifierGateway:
    """Verifier gateway поверх requests."""

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        accepted_issuer_dids: Iterable[str] = (),
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or GatewaySettings()
        self.accepted_issuer_dids = tuple(accepted_issuer_dids)
        self.session = session or requests.Session()

    def _request_json(self, method: str, url: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.debug("Verifier %s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.http_timeout_sec,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise GatewayError(f"Verifier {method} failed", {"url": url, "error": str(e)}) from e
        except ValueError as e:
            raise GatewayError(f"Verifier {method} returned invalid JSON", {"url": url}) from e

        if not isinstance(payload, dict):
            raise GatewayError(f"Verifier {method} returned a non-object body", {"url": url})
        return payload

    def create_session(self, requirements: Sequence[AttributeRequirement]) -> CreatedSession:
        body = build_presentation_request(requirements, self.accepted_issuer_dids)
        payload = self._request_json("POST", self.settings.verifier_url, body)

        session_id = payload.get("id")
        challenge = payload.get("verification_url")
        if not session_id or not challenge:
            raise GatewayError(
                "Verifier response is missing id or verification_url",
                {"keys": ",".join(sorted(payload))},
            )
        return CreatedSession(session_id=str(session_id), challenge=str(challenge))

    def get_session(self, session_id: str) -> GatewaySessionState:
        if not session_id:
            raise GatewayError("session_id is required")
        url = f"{self.settings.verifier_url.rstrip('/')}/{quote(session_id, safe='')}"
        payload = self._request_json("GET", url)

        state = payload.get("state")
        if not state:
            raise GatewayError("Verifier response has no state", {"session_id": session_id})

        wallet_response = payload.get("wallet_response") or {}
        claims = wallet_response.get("credential_subject_data") if isinstance(wallet_response, dict) else None
        return GatewaySessionState(status=str(state), claims=claims if isinstance(claims, dict) else None)
