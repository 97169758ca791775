"""
Server Model - authoritative state registry for the chat server

Tracks connected users, their nicknames, channels, membership,
ownership and invite-only flags. Every state change returns a
Broadcast naming who must be told; delivery is left to the transport.
"""

import logging
import threading
from functools import wraps
from typing import Dict, List, Optional, Set

from config_manager import ConfigManager
from input_validator import InputValidator
from models import Broadcast, Channel, ServerError
from user_directory import UserDirectory, DEFAULT_NICKNAME_PREFIX


logger = logging.getLogger('ServerModel')


def synchronized(method):
    """Run a ServerModel method while holding the registry lock"""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class ServerModel:
    """
    Owns the user directory and the channel collection.

    One re-entrant lock guards both collections together, because
    nickname uniqueness, title uniqueness and "a deregistered id is in
    no channel" span the two. All methods are in-memory and short, so
    coarse locking is fine.
    """

    def __init__(self, nickname_prefix: str = DEFAULT_NICKNAME_PREFIX):
        self._lock = threading.RLock()
        self._users = UserDirectory(nickname_prefix)
        self._channels: Dict[str, Channel] = {}  # title -> Channel

    @classmethod
    def from_config(cls, config: ConfigManager) -> 'ServerModel':
        """Build a registry from the registry section of a config"""
        prefix = config.get('registry', 'default_nickname_prefix',
                            default=DEFAULT_NICKNAME_PREFIX)
        return cls(nickname_prefix=prefix)

    @staticmethod
    def is_valid_name(name: str) -> bool:
        """True if name is non-empty and only letters and decimal digits"""
        return InputValidator.is_valid_name(name)

    # ------------------------------------------------------------------
    # Client connection handlers
    # ------------------------------------------------------------------

    @synchronized
    def register_user(self, user_id: int) -> Broadcast:
        """
        Register a newly connected client under a default nickname

        Args:
            user_id: Connection id assigned by the transport

        Returns:
            CONNECTED broadcast to the new user, payload is the nickname
        """
        existing = self._users.get_nickname(user_id)
        if existing is not None:
            logger.warning(f"User {user_id} is already registered as {existing}")
            return Broadcast.connected(existing)

        nickname = self._users.generate_nickname()
        self._users.add(user_id, nickname)
        logger.info(f"Registered {nickname} with ID {user_id}")
        return Broadcast.connected(nickname)

    @synchronized
    def deregister_user(self, user_id: int) -> Broadcast:
        """
        Remove every trace of a disconnected client

        Channels the user owned are dissolved, so a later connection
        reusing the id inherits nothing.

        Args:
            user_id: Connection id of the departing client

        Returns:
            DISCONNECTED broadcast to everyone who shared a channel
            with the user, listing the channels that were closed
        """
        nickname = self._users.remove(user_id)
        if nickname is None:
            logger.warning(f"Deregistering unknown user {user_id}")

        recipients: Set[str] = set()
        closed: List[str] = []
        for channel in list(self._iter_channels()):
            removed = channel.remove_member(user_id)
            if removed or channel.is_owner(user_id):
                recipients.update(self._resolve(channel.members))
            if channel.is_owner(user_id):
                closed.append(channel.title)
                self._dissolve(channel.title)

        if nickname is not None:
            logger.info(f"Deregistered {nickname} (ID {user_id}), notifying {len(recipients)} users")
        return Broadcast.disconnected(nickname, recipients, closed)

    # ------------------------------------------------------------------
    # Nicknames
    # ------------------------------------------------------------------

    @synchronized
    def change_nickname(self, user_id: int, nickname: str) -> Broadcast:
        """
        Rename a user after checking format and uniqueness

        Returns:
            NICKNAME_CHANGED broadcast to everyone who can see the user,
            or an ERROR broadcast to the user
        """
        old = self._users.get_nickname(user_id)
        if old is None:
            return self._reject(ServerError.INVALID_USER, None)
        is_valid, error_message = InputValidator.validate_nickname(nickname)
        if not is_valid:
            logger.warning(f"Rejected nickname {nickname!r} for {old}: {error_message}")
            return self._reject(ServerError.INVALID_NAME, old)
        if self._users.has_nickname(nickname):
            return self._reject(ServerError.NAME_ALREADY_IN_USE, old)

        self._users.rename(user_id, nickname)
        recipients = self.get_relevant(user_id)
        recipients.add(nickname)
        logger.info(f"{old} is now known as {nickname}")
        return Broadcast.nickname_changed(old, nickname, recipients)

    @synchronized
    def get_user_id(self, nickname: str) -> Optional[int]:
        """User id for a nickname, None if nobody holds it"""
        return self._users.get_user_id(nickname)

    @synchronized
    def get_nickname(self, user_id: int) -> Optional[str]:
        """Nickname for a user id, None if the id is not registered"""
        return self._users.get_nickname(user_id)

    @synchronized
    def get_registered_users(self) -> Set[str]:
        """Nicknames of every registered user (a copy)"""
        return self._users.nicknames()

    @synchronized
    def user_present_in_server(self, nickname: str) -> bool:
        return self._users.has_nickname(nickname)

    # ------------------------------------------------------------------
    # Channel management
    # ------------------------------------------------------------------

    @synchronized
    def add_channel(self, owner: int, title: str, invite_only: bool = False) -> Broadcast:
        """
        Create a channel with the owner as its first member

        Returns:
            CREATED broadcast to the owner, or an ERROR broadcast
        """
        owner_nickname = self._users.get_nickname(owner)
        if owner_nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        is_valid, error_message = InputValidator.validate_channel_name(title)
        if not is_valid:
            logger.warning(f"Rejected channel title {title!r} from {owner_nickname}: {error_message}")
            return self._reject(ServerError.INVALID_NAME, owner_nickname, title)
        if title in self._channels:
            return self._reject(ServerError.CHANNEL_ALREADY_EXISTS, owner_nickname, title)

        self._channels[title] = Channel(title, owner, invite_only)
        logger.info(f"Created {'invite-only ' if invite_only else ''}channel {title} "
                    f"with {owner_nickname} as owner")
        return Broadcast.created(owner_nickname, title, invite_only)

    @synchronized
    def remove_channel(self, title: str):
        """Delete a channel entirely, no-op if it does not exist"""
        if self._channels.pop(title, None) is not None:
            logger.info(f"Removed channel {title}")

    @synchronized
    def remove_everyone(self, title: str):
        """Empty a channel's member set but keep the channel"""
        channel = self._channels.get(title)
        if channel is not None:
            channel.clear_members()
            logger.debug(f"Removed all members from {title}")

    @synchronized
    def add_user(self, user_id: int, title: str) -> bool:
        """
        Add a user to a channel, returns True if membership changed

        Unregistered ids are refused so no channel ever holds a
        departed user.
        """
        channel = self._channels.get(title)
        if channel is None or user_id not in self._users:
            return False
        added = channel.add_member(user_id)
        if added:
            logger.debug(f"Added user {user_id} to {title}")
        return added

    @synchronized
    def remove_user(self, user_id: int, title: str) -> bool:
        """Remove a user from a channel, returns True if membership changed"""
        channel = self._channels.get(title)
        if channel is None:
            return False
        removed = channel.remove_member(user_id)
        if removed:
            logger.debug(f"Removed user {user_id} from {title}")
        return removed

    @synchronized
    def channel_exists(self, title: str) -> bool:
        return title in self._channels

    @synchronized
    def is_invite_only(self, title: str) -> bool:
        """Invite-only flag of a channel, False if it does not exist"""
        channel = self._channels.get(title)
        return channel is not None and channel.invite_only

    @synchronized
    def user_contained(self, user_id: int, title: str) -> bool:
        """Whether a user is in a channel, False if it does not exist"""
        channel = self._channels.get(title)
        return channel is not None and channel.contains(user_id)

    @synchronized
    def get_users(self, title: str) -> Set[str]:
        """Member nicknames of a channel, empty if it does not exist"""
        channel = self._channels.get(title)
        if channel is None:
            return set()
        return self._resolve(channel.members)

    @synchronized
    def get_owner(self, title: str) -> Optional[str]:
        """
        Owner nickname of a channel

        None if the channel does not exist or the owner has since
        disconnected.
        """
        channel = self._channels.get(title)
        if channel is None:
            return None
        return self._users.get_nickname(channel.owner)

    @synchronized
    def get_channels(self) -> List[str]:
        """Titles of every channel in alphabetical order"""
        return sorted(self._channels)

    # ------------------------------------------------------------------
    # Cross-cutting queries
    # ------------------------------------------------------------------

    @synchronized
    def get_relevant(self, user_id: int) -> Set[str]:
        """
        Nicknames of everyone sharing at least one channel with a user,
        including the user when they are in any channel
        """
        relevant: Set[str] = set()
        for channel in self._iter_channels():
            if channel.contains(user_id):
                relevant.update(self._resolve(channel.members))
        return relevant

    # ------------------------------------------------------------------
    # Command-level events
    # ------------------------------------------------------------------

    @synchronized
    def join_channel(self, user_id: int, title: str) -> Broadcast:
        """
        Join a public channel

        Invite-only channels are entered through invite_user instead.
        Joining a channel the user is already in is rejected.

        Returns:
            JOINED broadcast to every member including the joiner
        """
        nickname = self._users.get_nickname(user_id)
        if nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        channel = self._channels.get(title)
        if channel is None:
            return self._reject(ServerError.NO_SUCH_CHANNEL, nickname, title)
        if channel.contains(user_id):
            return self._reject(ServerError.USER_ALREADY_IN_CHANNEL, nickname, title)
        if channel.invite_only:
            return self._reject(ServerError.JOIN_PRIVATE_CHANNEL, nickname, title)

        channel.add_member(user_id)
        logger.info(f"{nickname} joined {title}")
        return Broadcast.joined(nickname, title, self._users.get_nickname(channel.owner),
                                self._resolve(channel.members))

    @synchronized
    def leave_channel(self, user_id: int, title: str) -> Broadcast:
        """
        Leave a channel

        When the owner leaves, the channel is dissolved: every member
        is removed and the channel deleted.

        Returns:
            LEFT broadcast to every member present before the departure
        """
        nickname = self._users.get_nickname(user_id)
        if nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        channel = self._channels.get(title)
        if channel is None:
            return self._reject(ServerError.NO_SUCH_CHANNEL, nickname, title)
        if not channel.contains(user_id):
            return self._reject(ServerError.USER_NOT_IN_CHANNEL, nickname, title)

        recipients = self._resolve(channel.members)
        dissolved = channel.is_owner(user_id)
        if dissolved:
            self._dissolve(title)
        else:
            channel.remove_member(user_id)
        logger.info(f"{nickname} left {title}")
        return Broadcast.left(nickname, title, recipients, dissolved)

    @synchronized
    def message_channel(self, user_id: int, title: str, text: str) -> Broadcast:
        """
        Address a chat message to a channel

        The text is carried in the broadcast and never stored.
        """
        nickname = self._users.get_nickname(user_id)
        if nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        channel = self._channels.get(title)
        if channel is None:
            return self._reject(ServerError.NO_SUCH_CHANNEL, nickname, title)
        if not channel.contains(user_id):
            return self._reject(ServerError.USER_NOT_IN_CHANNEL, nickname, title)

        return Broadcast.message(nickname, title, text, self._resolve(channel.members))

    @synchronized
    def invite_user(self, owner_id: int, target_nickname: str, title: str) -> Broadcast:
        """
        Add a user to an invite-only channel on the owner's behalf

        Returns:
            JOINED broadcast (sender is the invited user) to every member
        """
        owner_nickname = self._users.get_nickname(owner_id)
        if owner_nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        target_id = self._users.get_user_id(target_nickname)
        if target_id is None:
            return self._reject(ServerError.NO_SUCH_USER, owner_nickname, title)
        channel = self._channels.get(title)
        if channel is None:
            return self._reject(ServerError.NO_SUCH_CHANNEL, owner_nickname, title)
        if not channel.invite_only:
            return self._reject(ServerError.INVITE_TO_PUBLIC_CHANNEL, owner_nickname, title)
        if not channel.is_owner(owner_id):
            return self._reject(ServerError.USER_NOT_OWNER, owner_nickname, title)
        if channel.contains(target_id):
            return self._reject(ServerError.USER_ALREADY_IN_CHANNEL, owner_nickname, title)

        channel.add_member(target_id)
        logger.info(f"{owner_nickname} invited {target_nickname} to {title}")
        return Broadcast.joined(target_nickname, title, owner_nickname,
                                self._resolve(channel.members))

    @synchronized
    def kick_user(self, owner_id: int, target_nickname: str, title: str) -> Broadcast:
        """
        Remove a user from a channel on the owner's behalf

        Kicking the owner dissolves the channel.

        Returns:
            KICKED broadcast to every member including the kicked user
        """
        owner_nickname = self._users.get_nickname(owner_id)
        if owner_nickname is None:
            return self._reject(ServerError.INVALID_USER, None, title)
        target_id = self._users.get_user_id(target_nickname)
        if target_id is None:
            return self._reject(ServerError.NO_SUCH_USER, owner_nickname, title)
        channel = self._channels.get(title)
        if channel is None:
            return self._reject(ServerError.NO_SUCH_CHANNEL, owner_nickname, title)
        if not channel.is_owner(owner_id):
            return self._reject(ServerError.USER_NOT_OWNER, owner_nickname, title)
        if not channel.contains(target_id):
            return self._reject(ServerError.USER_NOT_IN_CHANNEL, owner_nickname, title)

        recipients = self._resolve(channel.members)
        dissolved = channel.is_owner(target_id)
        if dissolved:
            self._dissolve(title)
        else:
            channel.remove_member(target_id)
        logger.info(f"{owner_nickname} kicked {target_nickname} from {title}")
        return Broadcast.kicked(owner_nickname, target_nickname, title, recipients, dissolved)

    # ------------------------------------------------------------------
    # Helpers (callers hold the lock)
    # ------------------------------------------------------------------

    def _iter_channels(self):
        for title in sorted(self._channels):
            yield self._channels[title]

    def _resolve(self, user_ids) -> Set[str]:
        """Map member ids to nicknames, skipping ids no longer registered"""
        nicknames = set()
        for user_id in user_ids:
            nickname = self._users.get_nickname(user_id)
            if nickname is not None:
                nicknames.add(nickname)
        return nicknames

    def _dissolve(self, title: str):
        self.remove_everyone(title)
        self.remove_channel(title)

    def _reject(self, error: ServerError, nickname: Optional[str],
                title: Optional[str] = None) -> Broadcast:
        logger.warning(f"Rejected request from {nickname or 'unknown user'}: {error.value}"
                       + (f" ({title})" if title else ""))
        return Broadcast.failure(error, nickname, title)
