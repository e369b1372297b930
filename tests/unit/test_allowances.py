from unittest import TestCase
from taxledger.token.allowances import Expiration, AllowanceResponse, AllowanceStore
from taxledger.token.state import TokenState
from taxledger.execution.runtime import BlockInfo
from taxledger.db.driver import ContractDriver
from taxledger.stdlib.time import Datetime
from taxledger.exceptions import CannotSetOwnAccount, InvalidExpiration, Expired, NoAllowance, Overflow, InvalidAmount
from taxledger import config


class TestExpiration(TestCase):
    def setUp(self):
        self.block = BlockInfo(height=100, time=Datetime(2024, 1, 1, hour=12))

    def test_never(self):
        self.assertFalse(Expiration.never().is_expired(self.block))

    def test_at_height(self):
        self.assertTrue(Expiration.at_height(99).is_expired(self.block))
        self.assertTrue(Expiration.at_height(100).is_expired(self.block))
        self.assertFalse(Expiration.at_height(101).is_expired(self.block))

    def test_at_time(self):
        self.assertTrue(Expiration.at_time(Datetime(2024, 1, 1, hour=12)).is_expired(self.block))
        self.assertFalse(Expiration.at_time(Datetime(2024, 1, 1, hour=13)).is_expired(self.block))

    def test_at_time_from_iso(self):
        self.assertEqual(Expiration.at_time('2024-01-01T13:00:00Z'), Expiration.at_time(Datetime(2024, 1, 1, hour=13)))

    def test_dict_forms(self):
        self.assertEqual(Expiration.never().to_dict(), {'never': {}})
        self.assertEqual(Expiration.at_height(5).to_dict(), {'at_height': 5})
        self.assertEqual(Expiration.from_dict({'at_height': 5}), Expiration.at_height(5))
        self.assertEqual(Expiration.from_dict({'never': {}}), Expiration.never())
        self.assertEqual(Expiration.from_dict(None), Expiration.never())

    def test_unknown_kind(self):
        with self.assertRaises(ValueError):
            Expiration.from_dict({'at_epoch': 5})

    def test_malformed_forms(self):
        with self.assertRaises(ValueError):
            Expiration.from_dict('tomorrow')

        with self.assertRaises(ValueError):
            Expiration.from_dict({'at_height': 5, 'never': {}})

        with self.assertRaises(TypeError):
            Expiration.at_time(12345)


class TestAllowanceStore(TestCase):
    def setUp(self):
        self.driver = ContractDriver()
        self.state = TokenState(self.driver)
        self.store = AllowanceStore(self.state)
        self.block = BlockInfo(height=100)

    def tearDown(self):
        self.driver.flush()

    def assertMirrored(self, owner, spender):
        self.assertEqual(self.state.allowances[owner, spender], self.state.allowances_spender[spender, owner])

    def test_query_absent_is_default(self):
        self.assertEqual(self.store.query('alice', 'bob'), AllowanceResponse(0, Expiration.never()))

    def test_increase_creates(self):
        self.store.increase('alice', 'bob', 100, self.block)

        self.assertEqual(self.store.query('alice', 'bob'), AllowanceResponse(100))
        self.assertMirrored('alice', 'bob')

    def test_increase_is_additive(self):
        self.store.increase('alice', 'bob', 100, self.block)
        self.store.increase('alice', 'bob', 50, self.block)

        self.assertEqual(self.store.query('alice', 'bob').allowance, 150)
        self.assertMirrored('alice', 'bob')

    def test_increase_replaces_expiration(self):
        self.store.increase('alice', 'bob', 100, self.block, expires=Expiration.at_height(200))
        self.store.increase('alice', 'bob', 1, self.block, expires=Expiration.at_height(300))

        self.assertEqual(self.store.query('alice', 'bob').expires, Expiration.at_height(300))

    def test_increase_keeps_expiration_when_not_given(self):
        self.store.increase('alice', 'bob', 100, self.block, expires=Expiration.at_height(200))
        self.store.increase('alice', 'bob', 1, self.block)

        self.assertEqual(self.store.query('alice', 'bob').expires, Expiration.at_height(200))

    def test_increase_self_fails(self):
        with self.assertRaises(CannotSetOwnAccount):
            self.store.increase('alice', 'alice', 100, self.block)

    def test_self_check_comes_before_expiration_check(self):
        with self.assertRaises(CannotSetOwnAccount):
            self.store.increase('alice', 'alice', 100, self.block, expires=Expiration.at_height(1))

    def test_increase_with_expired_expiration_fails(self):
        with self.assertRaises(InvalidExpiration):
            self.store.increase('alice', 'bob', 100, self.block, expires=Expiration.at_height(100))

        self.assertIsNone(self.state.allowances['alice', 'bob'])
        self.assertIsNone(self.state.allowances_spender['bob', 'alice'])

    def test_increase_overflow(self):
        self.store.increase('alice', 'bob', config.UINT128_MAX, self.block)

        with self.assertRaises(Overflow):
            self.store.increase('alice', 'bob', 1, self.block)

    def test_decrease_subtracts(self):
        self.store.increase('alice', 'bob', 100, self.block)
        self.store.decrease('alice', 'bob', 30, self.block)

        self.assertEqual(self.store.query('alice', 'bob').allowance, 70)
        self.assertMirrored('alice', 'bob')

    def test_decrease_past_zero_removes_both_entries(self):
        self.store.increase('alice', 'bob', 100, self.block, expires=Expiration.at_height(500))
        self.store.decrease('alice', 'bob', 1000, self.block)

        self.assertEqual(self.store.query('alice', 'bob'), AllowanceResponse())
        self.assertIsNone(self.state.allowances['alice', 'bob'])
        self.assertIsNone(self.state.allowances_spender['bob', 'alice'])

    def test_decrease_exact_removes(self):
        self.store.increase('alice', 'bob', 100, self.block)
        self.store.decrease('alice', 'bob', 100, self.block)

        self.assertIsNone(self.state.allowances['alice', 'bob'])

    def test_decrease_absent_is_noop(self):
        self.store.decrease('alice', 'bob', 10, self.block)

        self.assertEqual(self.store.query('alice', 'bob'), AllowanceResponse())

    def test_decrease_self_fails(self):
        with self.assertRaises(CannotSetOwnAccount):
            self.store.decrease('alice', 'alice', 10, self.block)

    def test_decrease_with_expired_expiration_fails(self):
        self.store.increase('alice', 'bob', 100, self.block)

        with self.assertRaises(InvalidExpiration):
            self.store.decrease('alice', 'bob', 10, self.block, expires=Expiration.at_height(50))

    def test_decrease_replaces_expiration(self):
        self.store.increase('alice', 'bob', 100, self.block)
        self.store.decrease('alice', 'bob', 10, self.block, expires=Expiration.at_height(150))

        self.assertEqual(self.store.query('alice', 'bob'), AllowanceResponse(90, Expiration.at_height(150)))
        self.assertMirrored('alice', 'bob')

    def test_deduct(self):
        self.store.increase('alice', 'bob', 77777, self.block)
        self.store.deduct('alice', 'bob', 44444, self.block)

        self.assertEqual(self.store.query('alice', 'bob').allowance, 33333)
        self.assertMirrored('alice', 'bob')

    def test_deduct_absent_fails(self):
        with self.assertRaises(NoAllowance):
            self.store.deduct('alice', 'bob', 1, self.block)

    def test_deduct_expired_fails(self):
        self.store.increase('alice', 'bob', 100, self.block, expires=Expiration.at_height(101))

        with self.assertRaises(Expired):
            self.store.deduct('alice', 'bob', 1, self.block.next())

    def test_deduct_too_much_fails_and_keeps_allowance(self):
        self.store.increase('alice', 'bob', 33333, self.block)

        with self.assertRaises(Overflow):
            self.store.deduct('alice', 'bob', 33443, self.block)

        self.assertEqual(self.store.query('alice', 'bob').allowance, 33333)

    def test_negative_amounts_fail(self):
        self.store.increase('alice', 'bob', 10, self.block)

        with self.assertRaises(InvalidAmount):
            self.store.increase('alice', 'bob', -5, self.block)

        with self.assertRaises(InvalidAmount):
            self.store.decrease('alice', 'bob', -5, self.block)

        with self.assertRaises(InvalidAmount):
            self.store.deduct('alice', 'bob', -5, self.block)

        self.assertEqual(self.store.query('alice', 'bob').allowance, 10)

    def test_deduct_to_zero_keeps_entry(self):
        self.store.increase('alice', 'bob', 10, self.block)
        self.store.deduct('alice', 'bob', 10, self.block)

        self.assertIsNotNone(self.state.allowances['alice', 'bob'])
        self.assertEqual(self.store.query('alice', 'bob').allowance, 0)
        self.assertMirrored('alice', 'bob')

        # zero but present is an allowance, so a zero deduct still succeeds
        self.store.deduct('alice', 'bob', 0, self.block)

    def test_at_time_expiration_persists(self):
        expires = Expiration.at_time(Datetime(2030, 1, 1))
        self.store.increase('alice', 'bob', 10, self.block, expires=expires)
        self.driver.commit()

        self.assertEqual(self.store.query('alice', 'bob').expires, expires)
