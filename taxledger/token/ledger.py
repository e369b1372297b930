from taxledger.token.state import TokenState
from taxledger.exceptions import InsufficientFunds, InvalidAmount, Overflow
from taxledger import config


def check_amount(amount):
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount=amount, reason='not an integer')
    if amount < 0:
        raise InvalidAmount(amount=amount, reason='negative')
    return amount


class Ledger:
    """
    Address to amount balances plus total supply bookkeeping. Each call either
    writes its new value or raises before writing anything.
    """
    def __init__(self, state: TokenState):
        self.state = state

    def balance(self, address):
        return self.state.balances[address]

    def credit(self, address, amount: int):
        check_amount(amount)

        if amount == 0:
            return self.balance(address)

        balance = min(self.balance(address) + amount, config.UINT128_MAX)
        self.state.balances[address] = balance
        return balance

    def debit(self, address, amount: int):
        check_amount(amount)

        balance = self.balance(address)
        if amount > balance:
            raise InsufficientFunds(address=address, balance=balance, amount=amount)

        self.state.balances[address] = balance - amount
        return balance - amount

    def total_supply(self):
        return self.state.load_token_info().total_supply

    def reduce_supply(self, amount: int):
        check_amount(amount)
        info = self.state.load_token_info()
        if amount > info.total_supply:
            raise Overflow(operation='sub', left=info.total_supply, right=amount)

        info.total_supply -= amount
        self.state.save_token_info(info)
        return info.total_supply
