"""
Tests for the object graph and the registry's locking discipline
"""

import unittest
import os
import sys
import tempfile
import shutil
import threading

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config_manager import ConfigManager
from command_handler import CommandHandler
from dependency_container import DependencyContainer, create_default_container
from server_model import ServerModel


class TestDependencyInjection(unittest.TestCase):
    """Test dependency injection container"""

    def test_register_and_resolve_singleton(self):
        container = DependencyContainer()

        class TestService:
            pass

        container.register_singleton(TestService, lambda: TestService())

        self.assertIs(container.resolve(TestService), container.resolve(TestService))

    def test_register_instance(self):
        container = DependencyContainer()
        model = ServerModel()

        container.register_instance(ServerModel, model)

        self.assertIs(container.resolve(ServerModel), model)

    def test_resolve_unregistered(self):
        container = DependencyContainer()

        with self.assertRaises(KeyError):
            container.resolve(ServerModel)


class TestDefaultContainer(unittest.TestCase):
    """Test the server object graph"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.config = ConfigManager(os.path.join(self.temp_dir, "config.json"))

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_handler_shares_the_registry(self):
        """Test the command layer drives the same registry instance"""
        container = create_default_container(self.config)

        model = container.resolve(ServerModel)
        handler = container.resolve(CommandHandler)

        self.assertIs(handler.model, model)
        self.assertIs(container.resolve(ServerModel), model)

    def test_prefix_comes_from_config(self):
        self.config.set('registry', 'default_nickname_prefix', value='Guest')
        container = create_default_container(self.config)

        broadcast = container.resolve(ServerModel).register_user(0)

        self.assertEqual(broadcast.payload, "Guest0")

    def test_separate_containers_are_isolated(self):
        first = create_default_container(self.config).resolve(ServerModel)
        second = create_default_container(self.config).resolve(ServerModel)

        first.register_user(0)

        self.assertEqual(second.get_registered_users(), set())


class TestConcurrentAccess(unittest.TestCase):
    """Test registry invariants under concurrent callers"""

    def test_concurrent_registration_gives_unique_nicknames(self):
        model = ServerModel()
        barrier = threading.Barrier(8)

        def worker(base):
            barrier.wait()
            for offset in range(25):
                model.register_user(base * 100 + offset)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        users = model.get_registered_users()
        self.assertEqual(len(users), 200)
        self.assertEqual(users, {f"User{n}" for n in range(200)})

    def test_concurrent_join_and_disconnect(self):
        """Test no channel keeps a deregistered id"""
        model = ServerModel()
        model.register_user(0)
        model.add_channel(0, "lobby", False)
        for user_id in range(1, 101):
            model.register_user(user_id)

        def churn(user_id):
            model.join_channel(user_id, "lobby")
            model.deregister_user(user_id)

        threads = [threading.Thread(target=churn, args=(i,)) for i in range(1, 101)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(model.get_users("lobby"), {"User0"})
        for user_id in range(1, 101):
            self.assertFalse(model.user_contained(user_id, "lobby"))


if __name__ == '__main__':
    unittest.main()
