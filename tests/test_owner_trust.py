import unittest


class TestOwnerTrust(unittest.TestCase):
    def test_no_owner_configured_trusts_nobody(self) -> None:
        from uniclaw.kernel.owner import OwnerTrust

        trust = OwnerTrust(None)
        self.assertFalse(trust.configured)
        self.assertIsNone(trust.owner)
        self.assertFalse(trust.is_owner("deadbeef", "alice"))
        self.assertFalse(trust.is_owner("", None))

        blank = OwnerTrust("  @ ")
        self.assertFalse(blank.configured)
        self.assertFalse(blank.is_owner("", ""))

    def test_nametag_match_ignores_case_and_at_prefix(self) -> None:
        from uniclaw.kernel.owner import OwnerTrust

        trust = OwnerTrust("@Alice")
        self.assertTrue(trust.configured)
        self.assertEqual(trust.owner, "@Alice")
        self.assertTrue(trust.is_owner("deadbeef", "alice"))
        self.assertTrue(trust.is_owner("deadbeef", "@ALICE"))
        self.assertFalse(trust.is_owner("deadbeef", " alice"))
        self.assertFalse(trust.is_owner("deadbeef", "eve"))
        self.assertFalse(trust.is_owner("deadbeef", "alicex"))

    def test_pubkey_match(self) -> None:
        from uniclaw.kernel.owner import OwnerTrust

        pk = "ab" * 32
        trust = OwnerTrust(pk.upper())
        self.assertTrue(trust.is_owner(pk))
        self.assertTrue(trust.is_owner(pk, "someone-else"))
        self.assertFalse(trust.is_owner("cd" * 32))

    def test_nametag_owner_without_resolved_nametag_is_not_recognized(self) -> None:
        from uniclaw.kernel.owner import OwnerTrust

        # Pubkey-only events cannot be tied back to a nametag owner.
        trust = OwnerTrust("alice")
        self.assertFalse(trust.is_owner("ab" * 32, None))
        self.assertFalse(trust.is_owner("ab" * 32, ""))

    def test_sender_identity_is_not_trimmed(self) -> None:
        from uniclaw.kernel.owner import OwnerTrust

        # The configured owner is trimmed once; sender values are compared as given.
        trust = OwnerTrust("  alice ")
        self.assertTrue(trust.configured)
        self.assertTrue(trust.is_owner("cafe", "alice"))
        self.assertFalse(trust.is_owner("cafe", "alice "))
        self.assertFalse(trust.is_owner(" alice", None))

    def test_normalize_identity(self) -> None:
        from uniclaw.kernel.owner import normalize_identity

        self.assertEqual(normalize_identity("@Bob"), "bob")
        self.assertEqual(normalize_identity(" BOB"), " bob")
        self.assertEqual(normalize_identity(None), "")
        # Only one leading "@" is dropped.
        self.assertEqual(normalize_identity("@@bob"), "@bob")


if __name__ == "__main__":
    unittest.main()
