import unittest


class TestAccount(unittest.TestCase):
    def test_resolve_account_from_identity(self) -> None:
        from uniclaw.contracts.v1 import SphereIdentity
        from uniclaw.kernel.account import list_account_ids, resolve_account
        from uniclaw.kernel.settings import resolve_config

        self.assertEqual(list_account_ids(), ["default"])

        cfg = resolve_config({"nametag": "cfg-tag", "channel": {"name": " Bot "}})
        unready = resolve_account(cfg)
        self.assertEqual(unready.account_id, "default")
        self.assertFalse(unready.configured)
        self.assertEqual(unready.public_key, "")
        self.assertEqual(unready.nametag, "cfg-tag")
        self.assertEqual(unready.name, "Bot")
        self.assertTrue(unready.enabled)

        ready = resolve_account(cfg, SphereIdentity(chain_pubkey="02ab", nametag="real-tag"))
        self.assertTrue(ready.configured)
        self.assertEqual(ready.public_key, "02ab")
        self.assertEqual(ready.nametag, "real-tag")

    def test_dm_policy_defaults_and_overrides(self) -> None:
        from uniclaw.kernel.account import resolve_account, resolve_dm_policy
        from uniclaw.kernel.settings import resolve_config

        default = resolve_dm_policy(resolve_account(resolve_config({})))
        self.assertEqual(default.policy, "open")
        self.assertEqual(default.allow_from, [])
        self.assertIn("allow_from", default.approve_hint)

        top = resolve_dm_policy(resolve_account(resolve_config({"dm_policy": "allowlist", "allow_from": ["@a"]})))
        self.assertEqual(top.policy, "allowlist")
        self.assertEqual(top.allow_from, ["@a"])

        channel_wins = resolve_dm_policy(
            resolve_account(
                resolve_config(
                    {
                        "dm_policy": "allowlist",
                        "allow_from": ["@a"],
                        "channel": {"dm_policy": "disabled", "allow_from": ["@b"]},
                    }
                )
            )
        )
        self.assertEqual(channel_wins.policy, "disabled")
        self.assertEqual(channel_wins.allow_from, ["@b"])

    def test_targets(self) -> None:
        from uniclaw.kernel.account import looks_like_id, normalize_target

        self.assertEqual(normalize_target(" @alice "), "alice")
        self.assertTrue(looks_like_id("@alice"))
        self.assertTrue(looks_like_id("alice_01"))
        self.assertTrue(looks_like_id("ab" * 32))
        self.assertFalse(looks_like_id(""))
        self.assertFalse(looks_like_id("two words"))
        self.assertFalse(looks_like_id("x" * 40))

    def test_snapshot(self) -> None:
        from uniclaw.kernel.account import build_account_snapshot, describe_account, resolve_account
        from uniclaw.kernel.settings import resolve_config

        account = resolve_account(resolve_config({"channel": {"enabled": False}}))
        self.assertFalse(describe_account(account)["enabled"])
        self.assertIsNone(describe_account(account)["public_key"])

        snap = build_account_snapshot(account, {"running": True, "last_start_at": 10.0, "active_subscriptions": 3})
        self.assertTrue(snap.running)
        self.assertFalse(snap.enabled)
        self.assertEqual(snap.last_start_at, 10.0)
        self.assertEqual(snap.active_subscriptions, 3)
        self.assertIsNone(snap.last_error)

        idle = build_account_snapshot(account)
        self.assertFalse(idle.running)
        self.assertEqual(idle.active_subscriptions, 0)


if __name__ == "__main__":
    unittest.main()
