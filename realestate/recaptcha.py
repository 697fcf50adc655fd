"""
Google reCAPTCHA v3 verification
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import RECAPTCHA_SECRET_KEY

logger = logging.getLogger(__name__)

VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"


@dataclass(frozen=True)
class RecaptchaResult:
    success: bool
    score: Optional[float] = None
    error_codes: tuple = ()


async def verify_recaptcha(token: str, ip: Optional[str] = None) -> RecaptchaResult:
    """
    Verify a reCAPTCHA v3 token

    Args:
        token: Token produced by the browser widget
        ip: Client IP address (optional)

    Returns:
        RecaptchaResult. When no secret key is configured scoring is disabled and
        the result is a success without a score.
    """
    if not RECAPTCHA_SECRET_KEY:
        logger.info("ℹ️ RECAPTCHA_SECRET_KEY not configured - skipping verification")
        return RecaptchaResult(success=True, score=None)

    payload = {"secret": RECAPTCHA_SECRET_KEY, "response": token}
    if ip:
        payload["remoteip"] = ip

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(VERIFY_URL, data=payload, timeout=10.0)
            result = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"❌ reCAPTCHA verification error: {str(e)}")
        return RecaptchaResult(success=False)

    success = bool(result.get("success", False))
    score = result.get("score")
    error_codes = tuple(result.get("error-codes", []))

    if success:
        logger.info(f"✅ reCAPTCHA verified for IP {ip} (score={score})")
    else:
        logger.warning(f"❌ reCAPTCHA verification failed for IP {ip} - Errors: {list(error_codes)}")

    return RecaptchaResult(
        success=success,
        score=float(score) if score is not None else None,
        error_codes=error_codes,
    )
