import unittest


class TestChannelService(unittest.IsolatedAsyncioTestCase):
    def _service(self, sphere, configs):
        from _fakes import RecordingPipeline
        from uniclaw.ports.channel.service import ChannelService

        loads = []

        def loader():
            cfg = configs[min(len(loads), len(configs) - 1)]
            loads.append(cfg)
            return cfg

        holder = {"client": sphere}
        svc = ChannelService(lambda: holder["client"], RecordingPipeline(reply="ok"), config_loader=loader, configure_logging=False)
        return svc, holder, loads

    async def test_start_rereads_config(self) -> None:
        from _fakes import FakeSphere
        from uniclaw.contracts.v1 import DirectMessage
        from uniclaw.kernel.settings import GroupChatConfig, UniclawConfig

        sphere = FakeSphere()
        first = UniclawConfig(owner="alice")
        second = UniclawConfig(owner="bob", group_chat=GroupChatConfig(enabled=False))
        svc, _, loads = self._service(sphere, [first, second])

        bridge1 = await svc.start()
        self.assertEqual(len(sphere.group_handlers), 1)
        self.assertTrue(bridge1.session.owner.is_owner("x", "alice"))

        bridge2 = await svc.start()
        self.assertEqual(len(loads), 2)
        self.assertFalse(bridge1.running)
        self.assertTrue(bridge2.running)
        self.assertEqual(sphere.group_handlers, [])
        self.assertEqual(len(sphere.dm_handlers), 1)
        self.assertTrue(bridge2.session.owner.is_owner("x", "bob"))
        self.assertFalse(bridge2.session.owner.is_owner("x", "alice"))

        sphere.emit_dm(DirectMessage(sender_pubkey="cafe", sender_nametag="bob", content="hi"))
        await bridge2.drain()
        self.assertEqual(sphere.sent_dms, [("@bob", "ok")])

        svc.stop()
        self.assertIsNone(svc.bridge)
        self.assertEqual(sphere.active_handlers, 0)
        svc.stop()

    async def test_start_without_client(self) -> None:
        from uniclaw.kernel.settings import UniclawConfig
        from uniclaw.ports.channel.adapters import SphereNotReadyError

        svc, _, _ = self._service(None, [UniclawConfig()])
        with self.assertLogs("uniclaw.service", level="ERROR"):
            with self.assertRaises(SphereNotReadyError):
                await svc.start()
        self.assertIsNone(svc.bridge)
        self.assertIsNone(svc.identity_prompt())
        self.assertFalse(svc.status().running)
        self.assertFalse(svc.status().configured)

    async def test_status_policy_prompt_and_send(self) -> None:
        from _fakes import FakeSphere
        from uniclaw.kernel.settings import UniclawConfig

        sphere = FakeSphere()
        svc, _, _ = self._service(sphere, [UniclawConfig(dm_policy="allowlist", allow_from=["@alice"])])

        self.assertEqual(svc.dm_policy().policy, "allowlist")
        self.assertEqual(svc.dm_policy().allow_from, ["@alice"])
        self.assertIn("Nametag: agent", svc.identity_prompt() or "")

        await svc.start()
        status = svc.status()
        self.assertTrue(status.running)
        self.assertEqual(status.active_subscriptions, 7)

        res = await svc.send_text("@alice", "hello")
        self.assertEqual(res["to"], "@alice")
        self.assertIn(("alice", "hello"), sphere.sent_dms)
        svc.stop()
        self.assertFalse(svc.status().running)


if __name__ == "__main__":
    unittest.main()
