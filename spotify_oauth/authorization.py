"""OAuth authorization URL construction"""

import logging
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from .config import AuthConfig
from .credential_store import CredentialStore
from .models import PKCESession
from .pkce import PKCEGenerator

logger = logging.getLogger(__name__)

Navigator = Callable[[str], bool]


class AuthorizationInitiator:
    """Starts the authorization code flow with PKCE"""

    def __init__(
        self,
        config: AuthConfig,
        store: CredentialStore,
        pkce: Optional[PKCEGenerator] = None,
        navigate: Navigator = webbrowser.open,
    ):
        self.config = config
        self.store = store
        self.pkce = pkce or PKCEGenerator()
        self.navigate = navigate

    def build_authorize_url(self, session: PKCESession) -> str:
        """Construct the authorize URL for a PKCE session

        Returns:
            Full authorization URL
        """
        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "code_challenge_method": "S256",
            "code_challenge": self.pkce.generate_code_challenge(session.code_verifier),
            "state": session.state,
            "scope": " ".join(self.config.scopes),
        }
        return f"{self.config.authorize_endpoint}?{urlencode(params)}"

    def login(self) -> str:
        """Start a login attempt and navigate to the provider

        Any previously pending PKCE session is overwritten, so only the most
        recent attempt can complete.

        Returns:
            Authorization URL that was navigated to
        """
        session = self.pkce.generate_session()
        self.store.save_pkce_session(session)

        auth_url = self.build_authorize_url(session)
        logger.info("Starting Spotify authorization flow")

        if not self.navigate(auth_url):
            logger.warning("Navigator could not open the authorization URL")

        return auth_url
