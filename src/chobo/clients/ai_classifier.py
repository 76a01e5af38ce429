"""HTTP client for the external account-classification service."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from chobo.domain.entities import Account

logger = logging.getLogger(__name__)


class AIClassifierError(Exception):
    """The classification service failed or answered with unusable data."""


@dataclass(frozen=True)
class AIClassification:
    """Raw answer of the service; account codes are not yet verified."""

    debit_account_code: str
    credit_account_code: str
    confidence: float
    reason: str = ""


class AIClassifierClient:
    """Client for an external service that proposes debit/credit accounts.

    The service receives ``{"description", "accounts"}`` and answers
    ``{"debit_account_code", "credit_account_code", "confidence", "reason"}``.
    Its answer is untrusted: confidence is clamped to [0, 1] here, and the
    caller re-resolves the codes against its own chart of accounts.
    """

    def __init__(
        self,
        url: str,
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def classify(self, description: str, accounts: Sequence[Account]) -> AIClassification:
        """Ask the service for a debit/credit pair.

        Raises:
            AIClassifierError: On timeout, transport or HTTP errors, or an invalid response
        """
        payload = {
            "description": description,
            "accounts": [
                {"code": a.code, "name": a.name, "account_type": a.account_type.value} for a in accounts
            ],
        }
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = client.post(self.url, json=payload, headers=self._headers())
                response.raise_for_status()
                data = response.json()

                confidence = float(data["confidence"])
                if confidence != confidence:
                    raise ValueError("confidence is NaN")
                return AIClassification(
                    debit_account_code=str(data["debit_account_code"]),
                    credit_account_code=str(data["credit_account_code"]),
                    confidence=min(max(confidence, 0.0), 1.0),
                    reason=str(data.get("reason") or ""),
                )

            except httpx.TimeoutException as e:
                raise AIClassifierError(f"Classifier timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise AIClassifierError(f"Classifier error: {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise AIClassifierError(f"Classifier unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise AIClassifierError(f"Invalid classifier response: {e}") from e
