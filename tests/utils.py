from unittest import TestCase
from taxledger.client import TokenClient
from taxledger.db.driver import ContractDriver

TOKEN = 'taxed_token'
ADMIN = 'admin'
PROCEEDS = 'P'


def always(rate):
    return {'always': {'tax_rate': rate}}


def rule(src, dst, proceeds=PROCEEDS):
    return {'src_cond': src, 'dst_cond': dst, 'proceeds': proceeds}


def tax_map(on_transfer=None, on_transfer_from=None, on_send=None, on_send_from=None, admin=ADMIN):
    d = {
        'on_transfer': on_transfer,
        'on_transfer_from': on_transfer_from,
        'on_send': on_send,
        'on_send_from': on_send_from,
        'admin': admin,
    }
    return {k: v for k, v in d.items() if v is not None}


def all_taxed(rate='0.1'):
    taxed = rule(always(rate), always(rate))
    return tax_map(taxed, taxed, taxed, taxed)


class TokenTestCase(TestCase):
    """
    A fresh token per test. alice holds 12,340,000 and bob 1,000 unless the
    test case overrides initial_balances or the tax map.
    """
    initial_balances = [
        {'address': 'alice', 'amount': '12340000'},
        {'address': 'bob', 'amount': '1000'},
    ]

    def token_tax_map(self):
        return tax_map()

    def setUp(self):
        self.driver = ContractDriver()
        self.driver.flush()

        self.client = TokenClient(signer='alice', driver=self.driver, contract_address=TOKEN)
        self.client.instantiate('Taxed Token', 'TAX', 6,
                                initial_balances=self.initial_balances,
                                tax_map=self.token_tax_map())

    def tearDown(self):
        self.driver.flush()

    def balances(self):
        return {address: self.client.balance(address) for address in self._all_accounts()}

    def total_balances(self):
        return sum(self.balances().values())

    def _all_accounts(self):
        accounts = []
        start_after = None
        while True:
            page = self.client.all_accounts(start_after=start_after, limit=30)
            if not page:
                return accounts
            accounts.extend(page)
            start_after = page[-1]
