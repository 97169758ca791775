"""
User Directory for the chat server registry
Bidirectional mapping between connection ids and nicknames
"""

import logging
from typing import Dict, Optional, Set


logger = logging.getLogger('UserDirectory')

DEFAULT_NICKNAME_PREFIX = "User"


class UserDirectory:
    """
    Tracks which nickname belongs to which live connection id.

    Both directions are kept in dicts so lookups are O(1). The two
    maps always hold exactly the same pairs. Not thread-safe on its
    own: the owning ServerModel serializes access.
    """

    def __init__(self, nickname_prefix: str = DEFAULT_NICKNAME_PREFIX):
        self.nickname_prefix = nickname_prefix
        self._nicknames: Dict[int, str] = {}  # user_id -> nickname
        self._user_ids: Dict[str, int] = {}  # nickname -> user_id

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._nicknames

    def generate_nickname(self) -> str:
        """
        Produce the default nickname with the smallest unused suffix.

        Only the current directory contents are consulted, so a suffix
        freed by a departed user is handed out again.
        """
        suffix = 0
        while f"{self.nickname_prefix}{suffix}" in self._user_ids:
            suffix += 1
        return f"{self.nickname_prefix}{suffix}"

    def add(self, user_id: int, nickname: str):
        """Bind a nickname to a new id"""
        self._nicknames[user_id] = nickname
        self._user_ids[nickname] = user_id
        logger.debug(f"Bound {nickname} to user {user_id}")

    def remove(self, user_id: int) -> Optional[str]:
        """Drop an id, returns the nickname it held (None if unknown)"""
        nickname = self._nicknames.pop(user_id, None)
        if nickname is not None:
            del self._user_ids[nickname]
        return nickname

    def rename(self, user_id: int, nickname: str):
        """Rebind an existing id to a new nickname"""
        old = self._nicknames[user_id]
        del self._user_ids[old]
        self._nicknames[user_id] = nickname
        self._user_ids[nickname] = user_id
        logger.debug(f"Renamed user {user_id} from {old} to {nickname}")

    def get_nickname(self, user_id: int) -> Optional[str]:
        return self._nicknames.get(user_id)

    def get_user_id(self, nickname: str) -> Optional[int]:
        return self._user_ids.get(nickname)

    def has_nickname(self, nickname: str) -> bool:
        return nickname in self._user_ids

    def nicknames(self) -> Set[str]:
        """Snapshot of every registered nickname"""
        return set(self._user_ids)
