from taxledger.token.state import TokenState
from taxledger.token.ledger import check_amount
from taxledger.stdlib.time import Datetime
from taxledger.exceptions import CannotSetOwnAccount, InvalidExpiration, Expired, NoAllowance, Overflow
from taxledger import config


class Expiration:
    AT_HEIGHT = 'at_height'
    AT_TIME = 'at_time'
    NEVER = 'never'

    KINDS = (AT_HEIGHT, AT_TIME, NEVER)

    def __init__(self, kind=NEVER, value=None):
        if kind not in self.KINDS:
            raise ValueError('Unknown expiration kind {}'.format(kind))
        self.kind = kind
        self.value = value

    @classmethod
    def at_height(cls, height: int):
        return cls(cls.AT_HEIGHT, int(height))

    @classmethod
    def at_time(cls, time):
        if isinstance(time, str):
            time = Datetime.from_iso(time)
        if not isinstance(time, Datetime):
            raise TypeError('Expiration time must be a Datetime')
        return cls(cls.AT_TIME, time)

    @classmethod
    def never(cls):
        return cls(cls.NEVER)

    def is_expired(self, block):
        if self.kind == self.AT_HEIGHT:
            return block.height >= self.value
        elif self.kind == self.AT_TIME:
            return block.time >= self.value
        elif self.kind == self.NEVER:
            return False
        raise ValueError('Unknown expiration kind {}'.format(self.kind))

    def to_dict(self):
        if self.kind == self.NEVER:
            return {self.NEVER: {}}
        return {self.kind: self.value}

    @classmethod
    def from_dict(cls, d):
        if d is None:
            return cls.never()

        if isinstance(d, Expiration):
            return d

        if not isinstance(d, dict) or len(d) != 1:
            raise ValueError('Expiration must have exactly one kind')
        kind, value = next(iter(d.items()))

        if kind == cls.AT_HEIGHT:
            return cls.at_height(value)
        elif kind == cls.AT_TIME:
            return cls.at_time(value)
        elif kind == cls.NEVER:
            return cls.never()
        raise ValueError('Unknown expiration kind {}'.format(kind))

    def __eq__(self, other):
        return isinstance(other, Expiration) and self.kind == other.kind and self.value == other.value

    def __repr__(self):
        if self.kind == self.NEVER:
            return 'Expiration(never)'
        return 'Expiration({}={})'.format(self.kind, self.value)


class AllowanceResponse:
    def __init__(self, allowance: int = 0, expires: Expiration = None):
        self.allowance = allowance
        self.expires = expires if expires is not None else Expiration.never()

    def to_dict(self):
        return {'allowance': self.allowance, 'expires': self.expires.to_dict()}

    @classmethod
    def from_dict(cls, d):
        return cls(allowance=d['allowance'], expires=Expiration.from_dict(d.get('expires')))

    def __eq__(self, other):
        return isinstance(other, AllowanceResponse) and \
            self.allowance == other.allowance and self.expires == other.expires

    def __repr__(self):
        return 'AllowanceResponse(allowance={}, expires={})'.format(self.allowance, self.expires)


class AllowanceStore:
    """
    Allowances indexed both ways: (owner, spender) in ``allowances`` and the
    mirror (spender, owner) in ``allowances_spender``. Every write touches both.
    """
    def __init__(self, state: TokenState):
        self.state = state

    def _load(self, owner, spender):
        raw = self.state.allowances[owner, spender]
        if raw is None:
            return None
        return AllowanceResponse.from_dict(raw)

    def _save(self, owner, spender, allowance: AllowanceResponse):
        raw = allowance.to_dict()
        self.state.allowances[owner, spender] = raw
        self.state.allowances_spender[spender, owner] = raw

    def _remove(self, owner, spender):
        del self.state.allowances[owner, spender]
        del self.state.allowances_spender[spender, owner]

    def query(self, owner, spender):
        allowance = self._load(owner, spender)
        if allowance is None:
            return AllowanceResponse()
        return allowance

    def increase(self, owner, spender, amount: int, block, expires: Expiration = None):
        if spender == owner:
            raise CannotSetOwnAccount()
        check_amount(amount)

        allowance = self.query(owner, spender)

        if expires is not None:
            if expires.is_expired(block):
                raise InvalidExpiration(expires=expires)
            allowance.expires = expires

        if allowance.allowance + amount > config.UINT128_MAX:
            raise Overflow(operation='add', left=allowance.allowance, right=amount)

        allowance.allowance += amount

        self._save(owner, spender, allowance)
        return allowance

    def decrease(self, owner, spender, amount: int, block, expires: Expiration = None):
        if spender == owner:
            raise CannotSetOwnAccount()
        check_amount(amount)

        allowance = self.query(owner, spender)

        # Decreasing past zero removes the allowance entirely
        if amount >= allowance.allowance:
            self._remove(owner, spender)
            return AllowanceResponse()

        allowance.allowance -= amount

        if expires is not None:
            if expires.is_expired(block):
                raise InvalidExpiration(expires=expires)
            allowance.expires = expires

        self._save(owner, spender, allowance)
        return allowance

    def deduct(self, owner, spender, amount: int, block):
        check_amount(amount)
        allowance = self._load(owner, spender)

        if allowance is None:
            raise NoAllowance(owner=owner, spender=spender)

        if allowance.expires.is_expired(block):
            raise Expired()

        if amount > allowance.allowance:
            raise Overflow(operation='sub', left=allowance.allowance, right=amount)

        # A zero remainder stays stored, it is not the same as no allowance
        allowance.allowance -= amount

        self._save(owner, spender, allowance)
        return allowance
