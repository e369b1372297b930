from taxledger.db.driver import ContractDriver
from taxledger.stdlib.time import Datetime, Timedelta
from taxledger.exceptions import InvalidAddress, NotAContract
from taxledger import config


class BlockInfo:
    def __init__(self, height: int = 1, time: Datetime = None, chain_id='taxledger-local'):
        self.height = height
        self.time = time if time is not None else Datetime(2024, 1, 1)
        self.chain_id = chain_id

    def next(self, blocks=1, seconds=5):
        return BlockInfo(
            height=self.height + blocks,
            time=self.time + Timedelta(seconds=blocks * seconds),
            chain_id=self.chain_id
        )

    def __repr__(self):
        return 'BlockInfo(height={}, time={}, chain_id={})'.format(self.height, self.time, self.chain_id)


class Api:
    """
    Address validation supplied by the host boundary. Addresses end up inside
    storage keys, so key delimiters and whitespace are refused.
    """
    def addr_validate(self, address):
        if not isinstance(address, str):
            raise InvalidAddress(address=address, reason='address must be a string')

        if len(address) == 0:
            raise InvalidAddress(address=address, reason='address is empty')

        if len(address) > config.MAX_ADDRESS_LENGTH:
            raise InvalidAddress(address=address[:32] + '...', reason='address is too long')

        if config.DELIMITER in address or config.INDEX_SEPARATOR in address:
            raise InvalidAddress(address=address, reason='address contains a key delimiter')

        if any(c.isspace() for c in address):
            raise InvalidAddress(address=address, reason='address contains whitespace')

        return address


class Querier:
    """
    Read-only view of other contracts, backed by the registry kept in the driver.
    """
    def __init__(self, driver: ContractDriver):
        self.driver = driver

    def code_id(self, address):
        code_id = self.driver.get_code_id(address)
        if code_id is None:
            raise NotAContract(address=address)
        return code_id


class Context:
    def __init__(self, base_state, maxlen=config.MAX_CALL_DEPTH):
        self._state = []
        self._base_state = base_state
        self._maxlen = maxlen

    def _get_state(self):
        if len(self._state) == 0:
            return self._base_state
        return self._state[-1]

    def _add_state(self, state: dict):
        if len(self._state) < self._maxlen:
            self._state.append(state)
            return True
        return False

    def _pop_state(self):
        if len(self._state) > 0:
            self._state.pop(-1)

    def _reset(self):
        self._state = []

    @property
    def depth(self):
        return len(self._state)

    @property
    def this(self):
        return self._get_state()['this']

    @property
    def caller(self):
        return self._get_state()['caller']

    @property
    def signer(self):
        return self._get_state()['signer']

    @property
    def block(self):
        return self._get_state()['block']


class Env:
    """
    Everything one contract call sees of its host: storage, context, block,
    address validation and contract lookups.
    """
    def __init__(self, driver: ContractDriver, context: Context, api: Api = None, querier: Querier = None):
        self.driver = driver
        self.context = context
        self.api = api or Api()
        self.querier = querier or Querier(driver)

    @property
    def block(self):
        return self.context.block

    @property
    def contract_address(self):
        return self.context.this
