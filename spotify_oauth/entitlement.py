"""Subscription tier verification"""

import json
import logging

import httpx

from .config import AuthConfig
from .errors import EntitlementRequired, ProfileUnavailable
from .models import UserProfile
from .validators import parse_user_profile

logger = logging.getLogger(__name__)


class EntitlementVerifier:
    """Checks that the authenticated account holds the required product tier"""

    def __init__(self, client: httpx.AsyncClient, config: AuthConfig):
        self.client = client
        self.config = config

    async def fetch_profile(self, access_token: str) -> UserProfile:
        """Fetch the current user's profile

        Raises:
            ProfileUnavailable: On transport failure or non-2xx status
            InvalidProfile: If the payload is malformed
        """
        try:
            response = await self.client.get(
                self.config.profile_endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.RequestError as e:
            logger.error(f"Profile request failed: {e}")
            raise ProfileUnavailable(f"Failed to fetch user profile: {e}") from e

        if not response.is_success:
            raise ProfileUnavailable(
                f"Failed to fetch user profile: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = None

        return parse_user_profile(payload)

    async def verify(self, access_token: str) -> UserProfile:
        """Fetch the profile and require the configured subscription tier

        Returns:
            The verified profile

        Raises:
            EntitlementRequired: If the product tier does not match
        """
        profile = await self.fetch_profile(access_token)
        required = self.config.required_subscription_tier
        if profile.product.lower() != required.lower():
            logger.warning(f"Account tier '{profile.product}' does not meet required tier '{required}'")
            raise EntitlementRequired(required, profile.product)
        return profile
