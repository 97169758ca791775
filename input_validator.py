"""
Input validation for the chat server registry
Nicknames and channel titles share one validity rule
"""

from typing import Optional, Tuple


class InputValidator:
    """Validates nicknames and channel titles"""

    @staticmethod
    def is_valid_name(name: Optional[str]) -> bool:
        """
        Check the shared name rule: non-empty and every character a
        letter or a decimal digit (no punctuation, whitespace, symbols,
        superscripts or vulgar fractions)

        Args:
            name: Nickname or channel title

        Returns:
            True if the name is valid
        """
        if not name or not isinstance(name, str):
            return False
        return all(char.isalpha() or char.isdecimal() for char in name)

    @staticmethod
    def validate_nickname(nickname: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate nickname

        Args:
            nickname: Nickname to validate

        Returns:
            (is_valid, error_message) tuple
        """
        if not nickname:
            return (False, "Nickname cannot be empty")

        if not InputValidator.is_valid_name(nickname):
            return (False, "Nickname can only contain letters and numbers")

        return (True, None)

    @staticmethod
    def validate_channel_name(channel: Optional[str]) -> Tuple[bool, Optional[str]]:
        """
        Validate channel title

        Args:
            channel: Channel title to validate

        Returns:
            (is_valid, error_message) tuple
        """
        if not channel:
            return (False, "Channel name cannot be empty")

        if not InputValidator.is_valid_name(channel):
            return (False, "Channel name can only contain letters and numbers")

        return (True, None)
