from unittest import TestCase
from taxledger.execution.runtime import Api, BlockInfo, Context, Querier, Env
from taxledger.db.driver import ContractDriver
from taxledger.stdlib.time import Datetime
from taxledger.exceptions import InvalidAddress, NotAContract


class TestApi(TestCase):
    def setUp(self):
        self.api = Api()

    def test_valid_address_returned(self):
        self.assertEqual(self.api.addr_validate('alice'), 'alice')

    def test_single_character_is_valid(self):
        self.assertEqual(self.api.addr_validate('P'), 'P')

    def test_empty_fails(self):
        with self.assertRaises(InvalidAddress):
            self.api.addr_validate('')

    def test_not_a_string_fails(self):
        with self.assertRaises(InvalidAddress):
            self.api.addr_validate(123)

    def test_delimiters_fail(self):
        with self.assertRaises(InvalidAddress):
            self.api.addr_validate('ali:ce')

        with self.assertRaises(InvalidAddress):
            self.api.addr_validate('ali.ce')

    def test_whitespace_fails(self):
        with self.assertRaises(InvalidAddress):
            self.api.addr_validate('ali ce')

    def test_too_long_fails(self):
        with self.assertRaises(InvalidAddress):
            self.api.addr_validate('a' * 257)

        self.assertEqual(self.api.addr_validate('a' * 256), 'a' * 256)


class TestBlockInfo(TestCase):
    def test_next(self):
        block = BlockInfo(height=10, time=Datetime(2024, 1, 1))
        nxt = block.next(blocks=2, seconds=5)

        self.assertEqual(nxt.height, 12)
        self.assertEqual(nxt.time, Datetime(2024, 1, 1, second=10))
        self.assertEqual(nxt.chain_id, block.chain_id)

    def test_next_does_not_mutate(self):
        block = BlockInfo(height=10)
        block.next()

        self.assertEqual(block.height, 10)


class TestContext(TestCase):
    def setUp(self):
        self.base = {'signer': 'alice', 'caller': 'alice', 'this': 'token', 'block': BlockInfo()}

    def test_base_state(self):
        c = Context(self.base)

        self.assertEqual(c.caller, 'alice')
        self.assertEqual(c.signer, 'alice')
        self.assertEqual(c.this, 'token')
        self.assertEqual(c.depth, 0)

    def test_add_state_changes_caller(self):
        c = Context(self.base)
        c._add_state({'signer': 'alice', 'caller': 'token', 'this': 'token', 'block': self.base['block']})

        self.assertEqual(c.caller, 'token')
        self.assertEqual(c.signer, 'alice')
        self.assertEqual(c.depth, 1)

    def test_pop_state_restores(self):
        c = Context(self.base)
        c._add_state({'signer': 'alice', 'caller': 'token', 'this': 'token', 'block': self.base['block']})
        c._pop_state()

        self.assertEqual(c.caller, 'alice')

    def test_pop_empty_is_noop(self):
        c = Context(self.base)
        c._pop_state()

        self.assertEqual(c.depth, 0)

    def test_add_state_refused_when_full(self):
        c = Context(self.base, maxlen=2)

        self.assertTrue(c._add_state(dict(self.base)))
        self.assertTrue(c._add_state(dict(self.base)))
        self.assertFalse(c._add_state(dict(self.base)))
        self.assertEqual(c.depth, 2)

    def test_reset(self):
        c = Context(self.base)
        c._add_state(dict(self.base, caller='bob'))
        c._reset()

        self.assertEqual(c.caller, 'alice')


class TestQuerier(TestCase):
    def test_code_id(self):
        driver = ContractDriver()
        driver.set_contract('vault', 3)

        self.assertEqual(Querier(driver).code_id('vault'), 3)

    def test_code_id_zero(self):
        driver = ContractDriver()
        driver.set_contract('vault', 0)

        self.assertEqual(Querier(driver).code_id('vault'), 0)

    def test_not_a_contract(self):
        with self.assertRaises(NotAContract):
            Querier(ContractDriver()).code_id('alice')


class TestEnv(TestCase):
    def test_env_exposes_context(self):
        block = BlockInfo(height=5)
        context = Context({'signer': 'alice', 'caller': 'alice', 'this': 'token', 'block': block})
        env = Env(ContractDriver(), context)

        self.assertEqual(env.block.height, 5)
        self.assertEqual(env.contract_address, 'token')
        self.assertIsInstance(env.api, Api)
        self.assertIsInstance(env.querier, Querier)
