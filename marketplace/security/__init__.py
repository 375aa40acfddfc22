# Realtime channel authentication

from .channel_auth import ChannelAuthenticator, ChannelIdentity, ChannelAuthError

__all__ = ["ChannelAuthenticator", "ChannelIdentity", "ChannelAuthError"]
