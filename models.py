"""
Data Models for the chat server registry

Represents the channel entity and the notification values produced
by state changes. These models hold no locks and do no I/O, so they
can be tested in isolation.
"""

from dataclasses import dataclass, field
from typing import Optional, Set, FrozenSet, Iterable, List, Tuple, Dict, Any
from enum import Enum


class BroadcastType(Enum):
    """Kind of notification produced by a state change"""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CREATED = "created"
    JOINED = "joined"
    LEFT = "left"
    KICKED = "kicked"
    NICKNAME_CHANGED = "nickname_changed"
    MESSAGE = "message"
    ERROR = "error"


class ServerError(Enum):
    """Reasons a mutating operation was rejected"""
    INVALID_NAME = "invalid_name"
    NAME_ALREADY_IN_USE = "name_already_in_use"
    CHANNEL_ALREADY_EXISTS = "channel_already_exists"
    NO_SUCH_CHANNEL = "no_such_channel"
    NO_SUCH_USER = "no_such_user"
    USER_NOT_IN_CHANNEL = "user_not_in_channel"
    USER_NOT_OWNER = "user_not_owner"
    USER_ALREADY_IN_CHANNEL = "user_already_in_channel"
    JOIN_PRIVATE_CHANNEL = "join_private_channel"
    INVITE_TO_PUBLIC_CHANNEL = "invite_to_public_channel"
    INVALID_USER = "invalid_user"
    INVALID_COMMAND = "invalid_command"


@dataclass
class Channel:
    """Represents a chat channel"""
    title: str
    owner: int  # user_id
    invite_only: bool = False
    members: Set[int] = field(default_factory=set)  # user_ids

    def __post_init__(self):
        self.members.add(self.owner)

    def add_member(self, user_id: int) -> bool:
        """Add a member, returns False if already present"""
        if user_id in self.members:
            return False
        self.members.add(user_id)
        return True

    def remove_member(self, user_id: int) -> bool:
        """Remove a member, returns False if not present"""
        if user_id not in self.members:
            return False
        self.members.discard(user_id)
        return True

    def clear_members(self):
        """Remove every member, keeping title, owner and invite-only flag"""
        self.members.clear()

    def contains(self, user_id: int) -> bool:
        return user_id in self.members

    def is_owner(self, user_id: int) -> bool:
        """Check if user is the channel owner"""
        return user_id == self.owner


@dataclass(frozen=True)
class Broadcast:
    """
    Immutable notification returned by registry operations.

    The registry never delivers anything itself: the transport sends
    a broadcast to each nickname in ``recipients``.

    Fields used per kind:
        CONNECTED        payload = assigned nickname
        DISCONNECTED     sender = departed nickname, closed_channels
        CREATED          sender, channel, invite_only
        JOINED           sender, channel, owner, members
        LEFT             sender, channel, dissolved
        KICKED           sender (owner), channel, payload = kicked nickname, dissolved
        NICKNAME_CHANGED sender = old nickname, payload = new nickname
        MESSAGE          sender, channel, payload = text
        ERROR            error, channel (when relevant)
    """
    kind: BroadcastType
    recipients: FrozenSet[str] = frozenset()
    sender: Optional[str] = None
    channel: Optional[str] = None
    payload: Optional[str] = None
    owner: Optional[str] = None
    members: Tuple[str, ...] = ()
    invite_only: bool = False
    dissolved: bool = False
    closed_channels: Tuple[str, ...] = ()
    error: Optional[ServerError] = None

    @classmethod
    def connected(cls, nickname: str) -> 'Broadcast':
        return cls(BroadcastType.CONNECTED, frozenset([nickname]), payload=nickname)

    @classmethod
    def disconnected(cls, nickname: Optional[str], recipients: Iterable[str],
                     closed_channels: Iterable[str] = ()) -> 'Broadcast':
        return cls(BroadcastType.DISCONNECTED, frozenset(recipients), sender=nickname,
                   closed_channels=tuple(sorted(closed_channels)))

    @classmethod
    def created(cls, owner: str, channel: str, invite_only: bool) -> 'Broadcast':
        return cls(BroadcastType.CREATED, frozenset([owner]), sender=owner,
                   channel=channel, owner=owner, members=(owner,),
                   invite_only=invite_only)

    @classmethod
    def joined(cls, nickname: str, channel: str, owner: Optional[str],
               recipients: Iterable[str]) -> 'Broadcast':
        """Join notice; members lets the joiner render the channel roster"""
        recipients = frozenset(recipients)
        return cls(BroadcastType.JOINED, recipients, sender=nickname, channel=channel,
                   owner=owner, members=tuple(sorted(recipients)))

    @classmethod
    def left(cls, nickname: str, channel: str, recipients: Iterable[str],
             dissolved: bool = False) -> 'Broadcast':
        return cls(BroadcastType.LEFT, frozenset(recipients), sender=nickname,
                   channel=channel, dissolved=dissolved)

    @classmethod
    def kicked(cls, owner: str, target: str, channel: str, recipients: Iterable[str],
               dissolved: bool = False) -> 'Broadcast':
        return cls(BroadcastType.KICKED, frozenset(recipients), sender=owner,
                   channel=channel, payload=target, dissolved=dissolved)

    @classmethod
    def nickname_changed(cls, old: str, new: str, recipients: Iterable[str]) -> 'Broadcast':
        return cls(BroadcastType.NICKNAME_CHANGED, frozenset(recipients),
                   sender=old, payload=new)

    @classmethod
    def message(cls, nickname: str, channel: str, text: str,
                recipients: Iterable[str]) -> 'Broadcast':
        return cls(BroadcastType.MESSAGE, frozenset(recipients), sender=nickname,
                   channel=channel, payload=text)

    @classmethod
    def failure(cls, error: ServerError, recipient: Optional[str],
                channel: Optional[str] = None) -> 'Broadcast':
        """Error addressed only to the user whose request was rejected"""
        recipients = frozenset([recipient]) if recipient is not None else frozenset()
        return cls(BroadcastType.ERROR, recipients, channel=channel, error=error)

    def is_error(self) -> bool:
        return self.kind == BroadcastType.ERROR

    def sorted_recipients(self) -> List[str]:
        """Recipients in alphabetical order for deterministic delivery"""
        return sorted(self.recipients)

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping for the transport layer"""
        return {
            'type': self.kind.value,
            'recipients': self.sorted_recipients(),
            'sender': self.sender,
            'channel': self.channel,
            'payload': self.payload,
            'owner': self.owner,
            'members': list(self.members),
            'invite_only': self.invite_only,
            'dissolved': self.dissolved,
            'closed_channels': list(self.closed_channels),
            'error': self.error.value if self.error else None,
        }
