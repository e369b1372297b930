"""
Request messages, responses and outbound actions.

Messages travel as single-key JSON objects, the key naming the operation:

    {"transfer": {"recipient": "bob", "amount": "100"}}

Amounts are unsigned integers given as ints or decimal strings, payloads are
bytes (base64 strings in JSON).
"""
import base64
import re

from taxledger.token.allowances import Expiration
from taxledger.token.state import MinterData
from taxledger.token.tax import TaxMap
from taxledger.exceptions import InvalidAmount, InvalidMessage, InvalidTokenInfo, UnknownMessage
from taxledger import config


def parse_amount(value):
    if isinstance(value, bool):
        raise InvalidAmount(amount=value, reason='not an integer')

    if isinstance(value, str):
        if not value.isdigit():
            raise InvalidAmount(amount=value, reason='not an unsigned integer string')
        value = int(value)

    if not isinstance(value, int):
        raise InvalidAmount(amount=value, reason='not an integer')

    if value < 0:
        raise InvalidAmount(amount=value, reason='negative')

    if value > config.UINT128_MAX:
        raise InvalidAmount(amount=value, reason='exceeds Uint128')

    return value


def parse_binary(value):
    if value is None:
        return b''
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except ValueError:
            raise InvalidMessage(reason='payload is not valid base64')
    raise InvalidMessage(reason='payload must be bytes or base64')


def _jsonable(value):
    if isinstance(value, bytes):
        return base64.b64encode(value).decode()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# Field converters, applied to every field a message is built with. Optional
# fields left out stay None.
CONVERTERS = {
    'amount': parse_amount,
    'msg': parse_binary,
    'expires': Expiration.from_dict,
    'tax_map': TaxMap.from_dict,
    'limit': int,
}


class Message:
    name = None
    fields = ()
    optional = ()

    def __init__(self, *args, **kwargs):
        if len(args) > len(self.fields):
            raise TypeError('{} takes at most {} arguments'.format(type(self).__name__, len(self.fields)))

        values = dict(zip(self.fields, args))
        values.update(kwargs)

        unknown = set(values) - set(self.fields)
        if unknown:
            raise TypeError('{} got unexpected fields {}'.format(type(self).__name__, sorted(unknown)))

        for field in self.fields:
            if field not in values and field not in self.optional:
                raise TypeError('{} is missing field {!r}'.format(type(self).__name__, field))
            setattr(self, field, self._convert(field, values.get(field)))

    @classmethod
    def _convert(cls, field, value):
        convert = CONVERTERS.get(field)
        if convert is None or (value is None and field in cls.optional):
            return value

        try:
            return convert(value)
        except (AssertionError, TypeError, ValueError) as e:
            raise InvalidMessage(reason='{}.{} is malformed ({})'.format(cls.name, field, e))

    @classmethod
    def from_body(cls, body):
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise InvalidMessage(reason='{} body must be an object'.format(cls.name))

        unknown = set(body) - set(cls.fields)
        if unknown:
            raise InvalidMessage(reason='{} has unknown fields {}'.format(cls.name, sorted(unknown)))

        for field in cls.fields:
            if field not in body and field not in cls.optional:
                raise InvalidMessage(reason='{} is missing field {!r}'.format(cls.name, field))

        return cls(**body)

    def to_dict(self):
        body = {}
        for field in self.fields:
            value = getattr(self, field)
            if value is None and field in self.optional:
                continue
            body[field] = _jsonable(value)
        return {self.name: body}

    def __eq__(self, other):
        return type(self) == type(other) and \
            all(getattr(self, f) == getattr(other, f) for f in self.fields)

    def __repr__(self):
        return '{}({})'.format(
            type(self).__name__,
            ', '.join('{}={!r}'.format(f, getattr(self, f)) for f in self.fields)
        )


# Execute messages

class Transfer(Message):
    name = 'transfer'
    fields = ('recipient', 'amount')


class Send(Message):
    name = 'send'
    fields = ('contract', 'amount', 'msg')
    optional = ('msg',)


class TransferFrom(Message):
    name = 'transfer_from'
    fields = ('owner', 'recipient', 'amount')


class SendFrom(Message):
    name = 'send_from'
    fields = ('owner', 'contract', 'amount', 'msg')
    optional = ('msg',)


class IncreaseAllowance(Message):
    name = 'increase_allowance'
    fields = ('spender', 'amount', 'expires')
    optional = ('expires',)


class DecreaseAllowance(Message):
    name = 'decrease_allowance'
    fields = ('spender', 'amount', 'expires')
    optional = ('expires',)


class SetTaxMap(Message):
    name = 'set_tax_map'
    fields = ('tax_map',)
    optional = ('tax_map',)


class SetTaxAdmin(Message):
    name = 'set_tax_admin'
    fields = ('tax_admin',)
    optional = ('tax_admin',)


class Burn(Message):
    name = 'burn'
    fields = ('amount',)


class BurnFrom(Message):
    name = 'burn_from'
    fields = ('owner', 'amount')


# Queries

class BalanceQuery(Message):
    name = 'balance'
    fields = ('address',)


class TokenInfoQuery(Message):
    name = 'token_info'


class MinterQuery(Message):
    name = 'minter'


class AllowanceQuery(Message):
    name = 'allowance'
    fields = ('owner', 'spender')


class TaxMapQuery(Message):
    name = 'tax_map'


class AllAllowancesQuery(Message):
    name = 'all_allowances'
    fields = ('owner', 'start_after', 'limit')
    optional = ('start_after', 'limit')


class AllSpenderAllowancesQuery(Message):
    name = 'all_spender_allowances'
    fields = ('spender', 'start_after', 'limit')
    optional = ('start_after', 'limit')


class AllAccountsQuery(Message):
    name = 'all_accounts'
    fields = ('start_after', 'limit')
    optional = ('start_after', 'limit')


EXECUTE_MESSAGES = {cls.name: cls for cls in (
    Transfer, Send, TransferFrom, SendFrom, IncreaseAllowance, DecreaseAllowance,
    SetTaxMap, SetTaxAdmin, Burn, BurnFrom
)}

QUERY_MESSAGES = {cls.name: cls for cls in (
    BalanceQuery, TokenInfoQuery, MinterQuery, AllowanceQuery, TaxMapQuery,
    AllAllowancesQuery, AllSpenderAllowancesQuery, AllAccountsQuery
)}


def _parse(d, registry):
    if isinstance(d, Message):
        if type(d) not in registry.values():
            raise UnknownMessage(name=d.name)
        return d

    if not isinstance(d, dict) or len(d) != 1:
        raise InvalidMessage(reason='a message is an object with exactly one key')

    name, body = next(iter(d.items()))
    cls = registry.get(name)
    if cls is None:
        raise UnknownMessage(name=name)

    return cls.from_body(body)


def parse_execute_msg(d):
    return _parse(d, EXECUTE_MESSAGES)


def parse_query_msg(d):
    return _parse(d, QUERY_MESSAGES)


class InstantiateMsg:
    def __init__(self, name, symbol, decimals, initial_balances=None, mint=None, tax_map=None):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        # list of (address, amount)
        self.initial_balances = [
            (b['address'], parse_amount(b['amount'])) if isinstance(b, dict) else (b[0], parse_amount(b[1]))
            for b in (initial_balances or [])
        ]
        self.mint = MinterData.from_dict(mint) if isinstance(mint, dict) else mint
        self.tax_map = TaxMap.from_dict(tax_map)

    def get_cap(self):
        return self.mint.cap if self.mint is not None else None

    def validate(self):
        if not isinstance(self.name, str) or \
                not config.NAME_MIN_LENGTH <= len(self.name) <= config.NAME_MAX_LENGTH:
            raise InvalidTokenInfo(reason='name is not in the expected format ({}-{} UTF-8 bytes)'.format(
                config.NAME_MIN_LENGTH, config.NAME_MAX_LENGTH))

        if not isinstance(self.symbol, str) or re.match(config.SYMBOL_PATTERN, self.symbol) is None:
            raise InvalidTokenInfo(reason='ticker symbol is not in expected format [a-zA-Z\\-]{3,12}')

        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int) or \
                not 0 <= self.decimals <= config.MAX_DECIMALS:
            raise InvalidTokenInfo(reason='decimals must be between 0 and {}'.format(config.MAX_DECIMALS))

    @classmethod
    def from_dict(cls, d):
        try:
            return cls(
                name=d['name'],
                symbol=d['symbol'],
                decimals=d['decimals'],
                initial_balances=d.get('initial_balances'),
                mint=d.get('mint'),
                tax_map=d.get('tax_map')
            )
        except KeyError as e:
            raise InvalidMessage(reason='instantiate is missing field {}'.format(e))


# Outbound actions

class ExecuteAction:
    """
    Execute ``msg`` on ``contract``. The tax forwarding action is one of these,
    addressed to the token itself.
    """
    def __init__(self, contract, msg: Message):
        self.contract = contract
        self.msg = msg

    def to_dict(self):
        return {'execute': {'contract_addr': self.contract, 'msg': self.msg.to_dict()}}

    def __eq__(self, other):
        return isinstance(other, ExecuteAction) and self.contract == other.contract and self.msg == other.msg

    def __repr__(self):
        return 'ExecuteAction(contract={!r}, msg={!r})'.format(self.contract, self.msg)


class ReceiveAction:
    """
    Deliver ``amount`` tokens and a payload to a receiving contract, with
    ``sender`` as the sender of record.
    """
    def __init__(self, contract, sender, amount: int, msg: bytes = b''):
        self.contract = contract
        self.sender = sender
        self.amount = amount
        self.msg = msg

    def to_dict(self):
        return {'execute': {
            'contract_addr': self.contract,
            'msg': {'receive': {
                'sender': self.sender,
                'amount': str(self.amount),
                'msg': base64.b64encode(self.msg).decode(),
            }}
        }}

    def __eq__(self, other):
        return isinstance(other, ReceiveAction) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'ReceiveAction(contract={!r}, sender={!r}, amount={}, msg={!r})'.format(
            self.contract, self.sender, self.amount, self.msg)


class Response:
    def __init__(self):
        self.attributes = []
        self.messages = []

    def add_attribute(self, key, value):
        self.attributes.append((key, str(value)))
        return self

    def add_attributes(self, attributes):
        for key, value in attributes:
            self.add_attribute(key, value)
        return self

    def add_message(self, action):
        self.messages.append(action)
        return self

    def attribute(self, key):
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def to_dict(self):
        return {
            'attributes': [{'key': k, 'value': v} for k, v in self.attributes],
            'messages': [m.to_dict() for m in self.messages],
        }

    def __repr__(self):
        return 'Response(attributes={}, messages={})'.format(self.attributes, self.messages)
