"""
Tests for data models (models.py)

Tests the domain models with no external dependencies.
"""

import unittest
import os
import sys
import dataclasses

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Channel, Broadcast, BroadcastType, ServerError


class TestChannel(unittest.TestCase):
    """Test Channel model"""

    def test_create_channel(self):
        """Test the owner is a member from the start"""
        channel = Channel(title="general", owner=3)

        self.assertEqual(channel.title, "general")
        self.assertEqual(channel.owner, 3)
        self.assertFalse(channel.invite_only)
        self.assertEqual(channel.members, {3})

    def test_invite_only_channel(self):
        channel = Channel("secret", 1, invite_only=True)
        self.assertTrue(channel.invite_only)

    def test_add_member(self):
        """Test adding members reports whether anything changed"""
        channel = Channel("test", 0)

        self.assertTrue(channel.add_member(1))
        self.assertFalse(channel.add_member(1))
        self.assertEqual(len(channel.members), 2)

    def test_remove_member(self):
        """Test removing members"""
        channel = Channel("test", 0)
        channel.add_member(1)

        self.assertTrue(channel.remove_member(1))
        self.assertFalse(channel.remove_member(1))
        self.assertFalse(channel.contains(1))
        self.assertTrue(channel.contains(0))

    def test_clear_members_keeps_attributes(self):
        channel = Channel("test", 0, invite_only=True)
        channel.add_member(1)

        channel.clear_members()

        self.assertEqual(len(channel.members), 0)
        self.assertEqual(channel.owner, 0)
        self.assertTrue(channel.invite_only)

    def test_is_owner(self):
        channel = Channel("test", 5)
        self.assertTrue(channel.is_owner(5))
        self.assertFalse(channel.is_owner(6))

    def test_is_owner_independent_of_membership(self):
        """Ownership stays with the owner id after it leaves the member set"""
        channel = Channel("test", 5)
        channel.remove_member(5)

        self.assertTrue(channel.is_owner(5))
        self.assertFalse(channel.contains(5))


class TestBroadcast(unittest.TestCase):
    """Test Broadcast model"""

    def test_connected(self):
        broadcast = Broadcast.connected("User0")

        self.assertEqual(broadcast.kind, BroadcastType.CONNECTED)
        self.assertEqual(broadcast.payload, "User0")
        self.assertEqual(broadcast.recipients, frozenset({"User0"}))

    def test_recipients_are_deduplicated(self):
        broadcast = Broadcast.disconnected("User0", ["b", "a", "b"])

        self.assertEqual(broadcast.recipients, frozenset({"a", "b"}))
        self.assertEqual(broadcast.sorted_recipients(), ["a", "b"])
        self.assertEqual(broadcast.sender, "User0")

    def test_disconnected_lists_closed_channels(self):
        broadcast = Broadcast.disconnected("alice", {"bob"}, ["zeta", "java"])

        self.assertEqual(broadcast.closed_channels, ("java", "zeta"))
        self.assertEqual(broadcast.to_dict()["closed_channels"], ["java", "zeta"])

    def test_immutable(self):
        """Test broadcasts cannot be modified after creation"""
        broadcast = Broadcast.connected("User0")

        with self.assertRaises(dataclasses.FrozenInstanceError):
            broadcast.payload = "User1"

    def test_joined_lists_members(self):
        broadcast = Broadcast.joined("carol", "general", "alice", {"bob", "alice", "carol"})

        self.assertEqual(broadcast.members, ("alice", "bob", "carol"))
        self.assertEqual(broadcast.owner, "alice")
        self.assertEqual(broadcast.channel, "general")

    def test_failure(self):
        broadcast = Broadcast.failure(ServerError.NO_SUCH_CHANNEL, "alice", "nowhere")

        self.assertTrue(broadcast.is_error())
        self.assertEqual(broadcast.error, ServerError.NO_SUCH_CHANNEL)
        self.assertEqual(broadcast.recipients, frozenset({"alice"}))

    def test_failure_without_recipient(self):
        broadcast = Broadcast.failure(ServerError.INVALID_USER, None)
        self.assertEqual(broadcast.recipients, frozenset())

    def test_to_dict(self):
        """Test conversion to a plain mapping for the transport"""
        broadcast = Broadcast.message("bob", "general", "hi", {"bob", "alice"})
        data = broadcast.to_dict()

        self.assertEqual(data['type'], "message")
        self.assertEqual(data['recipients'], ["alice", "bob"])
        self.assertEqual(data['sender'], "bob")
        self.assertEqual(data['payload'], "hi")
        self.assertIsNone(data['error'])

    def test_to_dict_error(self):
        data = Broadcast.failure(ServerError.INVALID_NAME, "bob").to_dict()
        self.assertEqual(data['type'], "error")
        self.assertEqual(data['error'], "invalid_name")


if __name__ == '__main__':
    unittest.main()
