"""
Chat Command Handler
Maps slash commands (/join, /nick, /kick, etc.) onto ServerModel operations
"""
import logging
from typing import Callable, Dict, Optional

from models import Broadcast, ServerError
from server_model import ServerModel


logger = logging.getLogger('CommandHandler')


class CommandHandler:
    """Handles slash commands sent by connected users"""

    def __init__(self, model: ServerModel):
        """
        Initialize command handler with the registry it drives

        Args:
            model: The ServerModel shared with the connection layer
        """
        self.model = model
        self.command_map: Dict[str, Callable[[int, str], Broadcast]] = {
            '/nick': self._cmd_nick,
            '/create': self._cmd_create,
            '/join': self._cmd_join,
            '/leave': self._cmd_leave,
            '/part': self._cmd_leave,
            '/msg': self._cmd_msg,
            '/invite': self._cmd_invite,
            '/kick': self._cmd_kick,
        }

    def handle_command(self, user_id: int, text: str) -> Broadcast:
        """
        Handle a slash command from a user

        Args:
            user_id: Connection id of the sender
            text: Command string starting with '/'

        Returns:
            The Broadcast for the transport to deliver
        """
        parts = text.strip().split(maxsplit=1)
        if not parts:
            return self._usage(user_id)
        cmd = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ""

        handler = self.command_map.get(cmd)
        if handler is None:
            logger.warning(f"Unknown command {cmd} from user {user_id}")
            return self._usage(user_id)
        return handler(user_id, args)

    def _usage(self, user_id: int, channel: Optional[str] = None) -> Broadcast:
        return Broadcast.failure(ServerError.INVALID_COMMAND,
                                 self.model.get_nickname(user_id), channel)

    @staticmethod
    def _channel(name: str) -> str:
        # Accept IRC-style '#title'
        return name[1:] if name.startswith('#') else name

    def _cmd_nick(self, user_id: int, args: str) -> Broadcast:
        """Handle /nick <new_nickname>"""
        parts = args.split()
        if len(parts) != 1:
            return self._usage(user_id)
        return self.model.change_nickname(user_id, parts[0])

    def _cmd_create(self, user_id: int, args: str) -> Broadcast:
        """Handle /create <channel> [invite]"""
        parts = args.split()
        if not parts or len(parts) > 2:
            return self._usage(user_id)
        if len(parts) == 2 and parts[1].lower() != 'invite':
            return self._usage(user_id)
        return self.model.add_channel(user_id, self._channel(parts[0]), len(parts) == 2)

    def _cmd_join(self, user_id: int, args: str) -> Broadcast:
        """Handle /join <channel>"""
        parts = args.split()
        if len(parts) != 1:
            return self._usage(user_id)
        return self.model.join_channel(user_id, self._channel(parts[0]))

    def _cmd_leave(self, user_id: int, args: str) -> Broadcast:
        """Handle /leave or /part <channel>"""
        parts = args.split()
        if len(parts) != 1:
            return self._usage(user_id)
        return self.model.leave_channel(user_id, self._channel(parts[0]))

    def _cmd_msg(self, user_id: int, args: str) -> Broadcast:
        """Handle /msg <channel> <message>"""
        parts = args.split(maxsplit=1)
        if len(parts) < 2:
            return self._usage(user_id)
        return self.model.message_channel(user_id, self._channel(parts[0]), parts[1])

    def _cmd_invite(self, user_id: int, args: str) -> Broadcast:
        """Handle /invite <user> <channel>"""
        parts = args.split()
        if len(parts) != 2:
            return self._usage(user_id)
        return self.model.invite_user(user_id, parts[0], self._channel(parts[1]))

    def _cmd_kick(self, user_id: int, args: str) -> Broadcast:
        """Handle /kick <user> <channel>"""
        parts = args.split()
        if len(parts) != 2:
            return self._usage(user_id)
        return self.model.kick_user(user_id, parts[0], self._channel(parts[1]))
