"""PKCE (Proof Key for Code Exchange) generation"""

import base64
import hashlib
import secrets

from .models import PKCESession

MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128


def _base64url(data: bytes) -> str:
    """Base64url encoding without padding (RFC 4648 section 5)"""
    return base64.urlsafe_b64encode(data).decode('ascii').rstrip('=')


class PKCEGenerator:
    """Generates PKCE code verifiers, challenges and anti-CSRF state values"""

    def generate_code_verifier(self, length: int = MAX_VERIFIER_LENGTH) -> str:
        """Generate a high-entropy code verifier

        Args:
            length: Verifier length, 43-128 characters

        Returns:
            Base64url-encoded random string of exactly ``length`` characters

        Raises:
            ValueError: If length is outside the allowed range
        """
        if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
            raise ValueError(
                f"Code verifier length must be between {MIN_VERIFIER_LENGTH} "
                f"and {MAX_VERIFIER_LENGTH} characters"
            )

        # 3 bytes encode to 4 characters; the remainder is truncated
        byte_length = (length * 3) // 4
        verifier = _base64url(secrets.token_bytes(byte_length))

        # Lengths not divisible by 4 leave the encoding one character short
        while len(verifier) < length:
            verifier += _base64url(secrets.token_bytes(3))

        return verifier[:length]

    def generate_code_challenge(self, code_verifier: str) -> str:
        """Create the S256 code challenge for a verifier

        Args:
            code_verifier: The code verifier string

        Returns:
            Base64url-encoded SHA-256 hash of the verifier
        """
        digest = hashlib.sha256(code_verifier.encode('ascii')).digest()
        return _base64url(digest)

    def generate_state(self) -> str:
        """Generate a random state parameter, independent of any verifier"""
        return self.generate_code_verifier(MIN_VERIFIER_LENGTH)

    def generate_session(self) -> PKCESession:
        """Generate a fresh verifier/state pair for one login attempt"""
        return PKCESession(
            code_verifier=self.generate_code_verifier(),
            state=self.generate_state(),
        )
