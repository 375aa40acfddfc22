"""
Realtime Channel Authentication

Channel membership is derived from a signed token, never from a
client-supplied channel name. The authentication service issues the token
alongside the HTTP credential; the websocket endpoint verifies it on join.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

logger = logging.getLogger(__name__)


class ChannelAuthError(Exception):
    """Channel token missing, expired or forged"""
    pass


@dataclass
class ChannelIdentity:
    """Verified owner of a realtime connection"""
    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def channels(self) -> list[str]:
        """Channels this identity may join: user id and lowercased email"""
        channels = []
        if self.user_id:
            channels.append(self.user_id)
        if self.email:
            channels.append(self.email.lower())
        return channels


class ChannelAuthenticator:
    """
    Issues and verifies channel tokens (HS256 JWT).

    Usage:
        auth = ChannelAuthenticator(secret="...")
        token = auth.issue(user_id="65f...", email="buyer@example.com")
        identity = auth.verify(token)
        identity.channels  # ["65f...", "buyer@example.com"]
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_minutes: int = 60 * 8):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=ttl_minutes)

    def issue(self, user_id: Optional[str] = None, email: Optional[str] = None) -> str:
        if not user_id and not email:
            raise ValueError("A channel token needs a user id or an email")
        now = datetime.now(timezone.utc)
        claims = {"iat": now, "exp": now + self.ttl}
        if user_id:
            claims["sub"] = user_id
        if email:
            claims["email"] = email.lower()
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> ChannelIdentity:
        if not token:
            raise ChannelAuthError("Missing channel token")
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise ChannelAuthError("Channel token expired")
        except jwt.InvalidTokenError as e:
            raise ChannelAuthError(f"Invalid channel token: {e}")

        identity = ChannelIdentity(user_id=claims.get("sub"), email=claims.get("email"))
        if not identity.channels:
            raise ChannelAuthError("Channel token carries no identity")
        return identity
