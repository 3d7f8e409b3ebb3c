import logging
from typing import Optional

import httpx

from civicalert.config import Settings

logger = logging.getLogger(__name__)


class RecaptchaVerifier:
    """Verifies reCAPTCHA challenge tokens. Fails closed."""

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        self.http = http
        self.settings = settings

    async def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        if not self.settings.recaptcha_secret_key:
            if self.settings.debug:
                logger.warning("RECAPTCHA_SECRET_KEY not set; skipping bot check in debug mode")
                return True
            logger.error("RECAPTCHA_SECRET_KEY not set; rejecting bot check")
            return False

        if not token:
            return False

        data = {"secret": self.settings.recaptcha_secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            response = await self.http.post(self.settings.recaptcha_verify_url, data=data)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error verifying reCAPTCHA: {e}")
            return False

        if not result.get("success"):
            logger.info("reCAPTCHA rejected: %s", result.get("error-codes", []))
            return False
        return True
