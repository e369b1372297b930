import json
import decimal
from taxledger.stdlib.time import Datetime, Timedelta
from taxledger.stdlib.decimal import make_decimal
from taxledger.config import INDEX_SEPARATOR, DELIMITER

MONGO_MIN_INT = -(2 ** 63)
MONGO_MAX_INT = 2 ** 63 - 1

##
# ENCODER CLASS
# Add to this to encode Python types for storage.
# Times are stored as field lists, decimals as strings, and Uint128 amounts above the Mongo integer limit as strings.
##


class Encoder(json.JSONEncoder):
    def default(self, o, *args):
        if isinstance(o, Datetime):
            return {
                '__time__': [o.year, o.month, o.day, o.hour, o.minute, o.second, o.microsecond]
            }
        elif isinstance(o, Timedelta):
            return {
                '__delta__': [o._timedelta.days, o._timedelta.seconds]
            }
        elif isinstance(o, bytes):
            return {
                '__bytes__': o.hex()
            }
        elif isinstance(o, decimal.Decimal):
            return {
                '__fixed__': str(o)
            }
        return super().default(o)


def encode_int(value: int):
    if MONGO_MIN_INT < value and value < MONGO_MAX_INT:
        return value

    return {
        '__big_int__': str(value)
    }


def _encode_ints(data):
    if isinstance(data, bool):
        return data
    elif isinstance(data, int):
        return encode_int(data)
    elif isinstance(data, dict):
        return {k: _encode_ints(v) for k, v in data.items()}
    elif isinstance(data, (list, tuple)):
        return [_encode_ints(i) for i in data]
    return data


# JSON library from Python 3 doesn't let you instantiate your custom Encoder. You have to pass it as an obj to json
def encode(data):
    """ NOTE:
    Normally encoding behavior is overriden in 'default' method inside
    a class derived from json.JSONEncoder. Unfortunately this can be done only
    for custom types, so big integers are preprocessed here.

    Keys are sorted so identical state always encodes to identical bytes.
    """
    return json.dumps(_encode_ints(data), cls=Encoder, separators=(',', ':'), sort_keys=True)


def as_object(d):
    if '__time__' in d:
        return Datetime(*d['__time__'])
    elif '__delta__' in d:
        return Timedelta(days=d['__delta__'][0], seconds=d['__delta__'][1])
    elif '__bytes__' in d:
        return bytes.fromhex(d['__bytes__'])
    elif '__fixed__' in d:
        return make_decimal(d['__fixed__'])
    elif '__big_int__' in d:
        return int(d['__big_int__'])
    return dict(d)


# Decode has a hook for JSON objects, which are just Python dictionaries. You have to specify the logic in this hook.
# This is not uniform, but this is how Python made it.
def decode(data):
    if data is None:
        return None

    if isinstance(data, bytes):
        data = data.decode()

    try:
        return json.loads(data, object_hook=as_object)
    except json.decoder.JSONDecodeError:
        return None


def make_key(contract, variable, args=[]):
    contract_variable = INDEX_SEPARATOR.join((contract, variable))
    if args:
        return DELIMITER.join((contract_variable, *[str(arg) for arg in args]))
    return contract_variable


def encode_kv(key, value):
    k = key.encode()
    v = encode(value).encode()
    return k, v


def decode_kv(key, value):
    k = key.decode()
    v = decode(value)
    return k, v
