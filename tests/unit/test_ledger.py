from unittest import TestCase
from taxledger.token.ledger import Ledger
from taxledger.token.state import TokenState, TokenInfo, MinterData
from taxledger.db.driver import ContractDriver
from taxledger.exceptions import InsufficientFunds, InvalidAmount, Overflow
from taxledger import config


class TestLedger(TestCase):
    def setUp(self):
        self.driver = ContractDriver()
        self.state = TokenState(self.driver)
        self.state.save_token_info(TokenInfo('Taxed Token', 'TAX', 6, total_supply=1000))
        self.ledger = Ledger(self.state)

    def tearDown(self):
        self.driver.flush()

    def test_balance_defaults_to_zero(self):
        self.assertEqual(self.ledger.balance('alice'), 0)

    def test_credit(self):
        self.assertEqual(self.ledger.credit('alice', 100), 100)
        self.assertEqual(self.ledger.credit('alice', 50), 150)
        self.assertEqual(self.ledger.balance('alice'), 150)

    def test_credit_zero_writes_nothing(self):
        self.ledger.credit('alice', 0)

        self.assertNotIn('alice', self.state.balances)

    def test_credit_saturates(self):
        self.ledger.credit('alice', config.UINT128_MAX)
        self.ledger.credit('alice', 10)

        self.assertEqual(self.ledger.balance('alice'), config.UINT128_MAX)

    def test_credit_negative_fails(self):
        with self.assertRaises(InvalidAmount):
            self.ledger.credit('alice', -1)

    def test_debit_negative_fails(self):
        self.ledger.credit('bob', 100)

        with self.assertRaises(InvalidAmount):
            self.ledger.debit('alice', -500)

        self.assertEqual(self.ledger.balance('alice'), 0)

    def test_non_integer_amount_fails(self):
        with self.assertRaises(InvalidAmount):
            self.ledger.credit('alice', '10')

        with self.assertRaises(InvalidAmount):
            self.ledger.debit('alice', 1.5)

    def test_debit(self):
        self.ledger.credit('alice', 100)

        self.assertEqual(self.ledger.debit('alice', 40), 60)
        self.assertEqual(self.ledger.balance('alice'), 60)

    def test_debit_to_zero(self):
        self.ledger.credit('alice', 100)
        self.ledger.debit('alice', 100)

        self.assertEqual(self.ledger.balance('alice'), 0)

    def test_debit_insufficient_writes_nothing(self):
        self.ledger.credit('alice', 100)

        with self.assertRaises(InsufficientFunds):
            self.ledger.debit('alice', 101)

        self.assertEqual(self.ledger.balance('alice'), 100)

    def test_debit_absent_account_fails(self):
        with self.assertRaises(InsufficientFunds):
            self.ledger.debit('nobody', 1)

    def test_total_supply(self):
        self.assertEqual(self.ledger.total_supply(), 1000)

    def test_reduce_supply(self):
        self.assertEqual(self.ledger.reduce_supply(400), 600)
        self.assertEqual(self.ledger.total_supply(), 600)

    def test_reduce_supply_underflow(self):
        with self.assertRaises(Overflow):
            self.ledger.reduce_supply(1001)

        self.assertEqual(self.ledger.total_supply(), 1000)

    def test_total_supply_requires_instantiation(self):
        ledger = Ledger(TokenState(self.driver, contract='other_token'))

        with self.assertRaises(AssertionError):
            ledger.total_supply()

    def test_stored_documents_must_be_objects(self):
        with self.assertRaises(TypeError):
            self.state.tax_map.set('always')

        self.assertIsNone(self.state.tax_map.get())


class TestTokenInfo(TestCase):
    def test_dict_form(self):
        info = TokenInfo('Taxed Token', 'TAX', 6, total_supply=10, mint=MinterData('alice', cap=100))
        d = info.to_dict()

        self.assertEqual(d['mint'], {'minter': 'alice', 'cap': 100})
        self.assertEqual(TokenInfo.from_dict(d).get_cap(), 100)

    def test_no_mint(self):
        info = TokenInfo.from_dict(TokenInfo('Taxed Token', 'TAX', 6).to_dict())

        self.assertIsNone(info.mint)
        self.assertIsNone(info.get_cap())

    def test_big_supply_survives_storage(self):
        driver = ContractDriver()
        state = TokenState(driver)
        state.save_token_info(TokenInfo('Taxed Token', 'TAX', 18, total_supply=config.UINT128_MAX))
        driver.commit()

        self.assertEqual(state.load_token_info().total_supply, config.UINT128_MAX)
