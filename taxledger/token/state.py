from taxledger.db.orm import Hash, Variable
from taxledger.db.driver import ContractDriver
from taxledger import config


class MinterData:
    def __init__(self, minter: str, cap: int = None):
        self.minter = minter
        # cap is how many more tokens can be issued by the minter
        self.cap = cap

    def to_dict(self):
        return {'minter': self.minter, 'cap': self.cap}

    @classmethod
    def from_dict(cls, d):
        if d is None:
            return None
        return cls(minter=d['minter'], cap=d.get('cap'))

    def __eq__(self, other):
        return isinstance(other, MinterData) and self.to_dict() == other.to_dict()


class TokenInfo:
    def __init__(self, name, symbol, decimals, total_supply=0, mint: MinterData = None):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = total_supply
        self.mint = mint

    def get_cap(self):
        return self.mint.cap if self.mint is not None else None

    def to_dict(self):
        return {
            'name': self.name,
            'symbol': self.symbol,
            'decimals': self.decimals,
            'total_supply': self.total_supply,
            'mint': self.mint.to_dict() if self.mint is not None else None,
        }

    @classmethod
    def from_dict(cls, d):
        return cls(
            name=d['name'],
            symbol=d['symbol'],
            decimals=d['decimals'],
            total_supply=d['total_supply'],
            mint=MinterData.from_dict(d.get('mint'))
        )


class TokenState:
    """
    Storage handles of one token contract, all keyed under its address.
    """
    def __init__(self, driver: ContractDriver, contract=config.DEFAULT_CONTRACT_ADDRESS):
        self.contract = contract
        self.driver = driver

        self.balances = Hash(contract, config.BALANCES, driver=driver, default_value=0)
        self.allowances = Hash(contract, config.ALLOWANCES, driver=driver)
        self.allowances_spender = Hash(contract, config.ALLOWANCES_SPENDER, driver=driver)
        self.token_info = Variable(contract, config.TOKEN_INFO, driver=driver, t=dict)
        self.tax_map = Variable(contract, config.TAX_MAP, driver=driver, t=dict)
        self.contract_info = Variable(contract, config.CONTRACT_INFO, driver=driver, t=dict)

    def load_token_info(self):
        raw = self.token_info.get()
        assert raw is not None, 'Token {} is not instantiated.'.format(self.contract)
        return TokenInfo.from_dict(raw)

    def save_token_info(self, info: TokenInfo):
        self.token_info.set(info.to_dict())
