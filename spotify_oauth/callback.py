"""Authorization callback verification and code exchange"""

import hmac
import logging
from typing import Callable, Optional

import httpx

from .config import AuthConfig
from .credential_store import CredentialStore
from .entitlement import EntitlementVerifier
from .errors import MissingCode, MissingSession, ProviderError, StateMismatch
from .models import TokenSet, now_ms
from .token_exchange import exchange_code

logger = logging.getLogger(__name__)


def states_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison of the stored and echoed state values"""
    if received is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), received.encode("utf-8"))


class CallbackProcessor:
    """Turns the provider's redirect parameters into a persisted token set"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: AuthConfig,
        store: CredentialStore,
        verifier: EntitlementVerifier,
        persist: Optional[Callable[[TokenSet], None]] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.config = config
        self.store = store
        self.verifier = verifier
        self.persist = persist or store.save_tokens
        self._clock = clock

    async def handle_callback(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> TokenSet:
        """Verify the callback and exchange the authorization code

        Args:
            code: Authorization code (absent when the provider returned an error)
            state: State value echoed back by the provider
            error: OAuth error code from the provider, if any
            error_description: Optional human readable error detail

        Returns:
            The persisted token set

        Raises:
            MissingSession: No pending (or an expired) PKCE session
            StateMismatch: State does not match the pending session
            ProviderError: Provider declined the authorization
            MissingCode: Callback carried neither code nor error
            TokenExchangeFailed: Token endpoint rejected the code
            InvalidTokenResponse: Malformed token payload
            EntitlementRequired: Account lacks the required tier (token stays persisted)
        """
        session = self.store.load_pkce_session()
        if session is None:
            logger.warning("Callback received without a pending PKCE session")
            raise MissingSession()

        if not states_match(session.state, state):
            logger.error("State mismatch on authorization callback")
            raise StateMismatch()

        # Single use from here on, whatever happens next
        self.store.clear_pkce_session()

        if error:
            logger.warning(f"Provider returned authorization error: {error}")
            raise ProviderError(error, error_description)

        if not code:
            raise MissingCode()

        response = await exchange_code(self.client, self.config, code, session.code_verifier)
        issued_at = self._clock()

        expires_in = self.config.cap_expires_in(response.expires_in)
        tokens = TokenSet.issued(
            access_token=response.access_token,
            expires_in=expires_in,
            scope=response.scope,
            refresh_token=response.refresh_token,
            issued_at=issued_at,
        )
        self.persist(tokens)
        logger.info("OAuth tokens obtained and stored")

        await self.verifier.verify(tokens.access_token)
        return tokens
