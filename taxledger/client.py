from taxledger.execution.executor import Executor
from taxledger.db.driver import ContractDriver
from taxledger.token.messages import (
    Transfer, Send, TransferFrom, SendFrom, IncreaseAllowance, DecreaseAllowance,
    SetTaxMap, SetTaxAdmin, Burn, BurnFrom,
    BalanceQuery, TokenInfoQuery, MinterQuery, AllowanceQuery, TaxMapQuery,
    AllAllowancesQuery, AllSpenderAllowancesQuery, AllAccountsQuery, InstantiateMsg
)
from taxledger.token.allowances import AllowanceResponse
from taxledger.token.tax import TaxMap

from . import config


class TokenClient:
    """
    Convenience facade over an Executor. Every call runs as its own unit of
    work and commits on success; failures are raised as the original error.
    Actions the executor could not deliver are kept in ``last_actions``.
    """
    def __init__(self, signer='sys',
                 driver=None,
                 contract_address=config.DEFAULT_CONTRACT_ADDRESS,
                 code_id=1,
                 environment=None):

        self.raw_driver = driver if driver is not None else ContractDriver()
        self.executor = Executor(driver=self.raw_driver, contract_address=contract_address)
        self.signer = signer
        self.contract_address = contract_address
        self.code_id = code_id
        self.environment = environment or {}
        self.last_actions = []

    def flush(self):
        self.raw_driver.flush()
        self.last_actions = []

    # Host environment

    @property
    def block(self):
        return self.executor.block

    def set_block(self, block):
        self.executor.block = block

    def advance_block(self, blocks=1, seconds=5):
        self.executor.block = self.executor.block.next(blocks=blocks, seconds=seconds)
        return self.executor.block

    def register_contract(self, address, code_id, receiver=None):
        self.raw_driver.set_contract(address, code_id)
        self.raw_driver.commit()

        if receiver is not None:
            self.executor.register_receiver(address, receiver)

    def _handle(self, output):
        if output['status_code'] == 1:
            raise output['result']

        self.last_actions = output['actions']
        return output['result']

    # Execution

    def instantiate(self, name, symbol, decimals, initial_balances=None, mint=None, tax_map=None, signer=None):
        msg = InstantiateMsg(
            name=name,
            symbol=symbol,
            decimals=decimals,
            initial_balances=initial_balances,
            mint=mint,
            tax_map=tax_map
        )

        output = self.executor.instantiate(signer or self.signer, msg, code_id=self.code_id,
                                           environment=self.environment)
        return self._handle(output)

    def execute(self, msg, signer=None):
        output = self.executor.execute(signer or self.signer, msg, environment=self.environment)
        return self._handle(output)

    def transfer(self, recipient, amount, signer=None):
        return self.execute(Transfer(recipient=recipient, amount=amount), signer=signer)

    def send(self, contract, amount, msg=b'', signer=None):
        return self.execute(Send(contract=contract, amount=amount, msg=msg), signer=signer)

    def transfer_from(self, owner, recipient, amount, signer=None):
        return self.execute(TransferFrom(owner=owner, recipient=recipient, amount=amount), signer=signer)

    def send_from(self, owner, contract, amount, msg=b'', signer=None):
        return self.execute(SendFrom(owner=owner, contract=contract, amount=amount, msg=msg), signer=signer)

    def increase_allowance(self, spender, amount, expires=None, signer=None):
        return self.execute(IncreaseAllowance(spender=spender, amount=amount, expires=expires), signer=signer)

    def decrease_allowance(self, spender, amount, expires=None, signer=None):
        return self.execute(DecreaseAllowance(spender=spender, amount=amount, expires=expires), signer=signer)

    def burn(self, amount, signer=None):
        return self.execute(Burn(amount=amount), signer=signer)

    def burn_from(self, owner, amount, signer=None):
        return self.execute(BurnFrom(owner=owner, amount=amount), signer=signer)

    def set_tax_map(self, tax_map=None, signer=None):
        return self.execute(SetTaxMap(tax_map=TaxMap.from_dict(tax_map)), signer=signer)

    def set_tax_admin(self, tax_admin=None, signer=None):
        return self.execute(SetTaxAdmin(tax_admin=tax_admin), signer=signer)

    # Queries

    def query(self, msg):
        return self.executor.query(msg, environment=self.environment)

    def balance(self, address):
        return self.query(BalanceQuery(address=address))['balance']

    def token_info(self):
        return self.query(TokenInfoQuery())

    def minter(self):
        return self.query(MinterQuery())

    def allowance(self, owner, spender):
        return AllowanceResponse.from_dict(self.query(AllowanceQuery(owner=owner, spender=spender)))

    def tax_map(self):
        return TaxMap.from_dict(self.query(TaxMapQuery()))

    def all_allowances(self, owner, start_after=None, limit=None):
        return self.query(AllAllowancesQuery(owner=owner, start_after=start_after, limit=limit))['allowances']

    def all_spender_allowances(self, spender, start_after=None, limit=None):
        return self.query(
            AllSpenderAllowancesQuery(spender=spender, start_after=start_after, limit=limit)
        )['allowances']

    def all_accounts(self, start_after=None, limit=None):
        return self.query(AllAccountsQuery(start_after=start_after, limit=limit))['accounts']
