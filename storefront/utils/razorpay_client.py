# storefront/utils/razorpay_client.py
import httpx
import logging
from typing import Optional
from urllib.parse import urljoin

from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from storefront.config import Settings
from storefront.errors import GatewayFailure

logger = logging.getLogger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    # Network trouble and gateway-side 5xx are worth another try; 4xx never is
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def gateway_retry(max_attempts: int, backoff: float):
    return retry(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=backoff, min=backoff, max=3),
        retry=retry_if_exception(_is_retryable),
    )


class RazorpayClient:
    def __init__(
        self,
        api_url: str,
        key_id: str,
        key_secret: str,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff: float = 0.3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.key_id = key_id
        self.key_secret = key_secret
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff = backoff
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "RazorpayClient":
        return cls(
            api_url=settings.RAZORPAY_API_URL,
            key_id=settings.RAZORPAY_KEY_ID,
            key_secret=settings.RAZORPAY_KEY_SECRET,
            timeout=settings.GATEWAY_TIMEOUT_SECONDS,
            max_attempts=settings.GATEWAY_MAX_ATTEMPTS,
        )

    async def _post(self, path: str, payload: dict) -> dict:
        url = urljoin(self.api_url, path)
        async with httpx.AsyncClient(
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            logger.info("Razorpay POST %s", url)
            response = await client.post(url, json=payload)
            response.raise_for_status()
            try:
                return response.json()
            except ValueError as e:
                logger.error("Razorpay returned a non-JSON body: status=%s body=%s", response.status_code, response.text[:500])
                raise GatewayFailure("Payment gateway returned an invalid response") from e

    async def create_order(self, amount: int, currency: str, receipt: str, notes: Optional[dict] = None) -> dict:
        # amount is in the currency's minor unit (paise for INR)
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        post = gateway_retry(self.max_attempts, self.backoff)(self._post)
        try:
            return await post("/v1/orders", payload)
        except httpx.HTTPStatusError as e:
            logger.error("Razorpay create order error: status=%s body=%s", e.response.status_code, e.response.text[:500])
            raise GatewayFailure(f"Payment gateway rejected the order ({e.response.status_code})") from e
        except httpx.HTTPError as e:
            logger.error("Razorpay create order failed after %s attempts: %s", self.max_attempts, e)
            raise GatewayFailure("Payment gateway unavailable") from e
