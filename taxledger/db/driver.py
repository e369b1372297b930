from taxledger.db.encoder import encode, decode
from taxledger.logger import get_logger
from taxledger import config
import pymongo
import re

log = get_logger('Driver')

# DB maps bytes to bytes
# Driver maps string to python object


class InMemDriver:
    def __init__(self):
        self.db = {}

    def get(self, item: str):
        key = item.encode()
        value = self.db.get(key)
        if value is None:
            return None
        return decode(value)

    def set(self, key: str, value):
        k = key.encode()
        if value is None:
            self.__delitem__(key)
        else:
            self.db[k] = encode(value).encode()

    def delete(self, key: str):
        self.__delitem__(key)

    def iter(self, prefix: str, length=0):
        p = prefix.encode()

        l = []
        for k in sorted(self.db.keys()):
            if k.startswith(p):
                l.append(k.decode())
            if 0 < length <= len(l):
                break

        return l

    def keys(self):
        return sorted([k.decode() for k in self.db.keys()])

    def flush(self):
        self.db.clear()

    def __getitem__(self, item: str):
        value = self.get(item)
        if value is None:
            raise KeyError(item)
        return value

    def __setitem__(self, key: str, value):
        self.set(key, value)

    def __delitem__(self, key: str):
        k = key.encode()
        try:
            del self.db[k]
        except KeyError:
            pass


class MongoDriver:
    # conn_str see https://www.mongodb.com/docs/manual/reference/connection-string/
    def __init__(self, conn_str=config.MONGO_URL, db=config.MONGO_DB, collection=config.MONGO_COLLECTION):
        self.client = pymongo.MongoClient(conn_str, serverSelectionTimeoutMS=config.MONGO_TIMEOUT_MS)
        self.db = self.client[db][collection]

    def get(self, item: str):
        v = self.db.find_one({'_id': item})
        if v is None:
            return None

        return decode(v['value'])

    def set(self, key: str, value):
        if value is None:
            self.delete(key)
        else:
            self.db.replace_one({'_id': key}, {'_id': key, 'value': encode(value)}, upsert=True)

    def delete(self, key: str):
        self.db.delete_one({'_id': key})

    def iter(self, prefix: str, length=0):
        cur = self.db.find(
            {'_id': {'$regex': '^{}'.format(re.escape(prefix))}},
            projection={'_id': True}
        ).sort('_id', pymongo.ASCENDING)

        if length > 0:
            cur = cur.limit(length)

        return [entry['_id'] for entry in cur]

    def keys(self):
        return [entry['_id'] for entry in self.db.find({}, projection={'_id': True}).sort('_id', pymongo.ASCENDING)]

    def flush(self):
        self.db.delete_many({})

    def __getitem__(self, item: str):
        value = self.get(item)
        if value is None:
            raise KeyError(item)
        return value

    def __setitem__(self, key: str, value):
        self.set(key, value)

    def __delitem__(self, key: str):
        self.delete(key)


class CacheDriver:
    def __init__(self, driver=None):
        self.pending_writes = {}  # L1 cache, discarded on rollback
        self.driver = driver if driver is not None else InMemDriver()  # L0

    def find(self, key: str):
        # A pending None is a pending delete and must shadow the stored value
        if key in self.pending_writes:
            return self.pending_writes[key]

        return self.driver.get(key)

    def get(self, key: str):
        return self.find(key)

    def set(self, key, value):
        self.pending_writes[key] = value

    def delete(self, key):
        self.set(key, None)

    def commit(self):
        for k, v in self.pending_writes.items():
            if v is None:
                self.driver.delete(k)
            else:
                self.driver.set(k, v)

        log.debug('Committed {} writes'.format(len(self.pending_writes)))
        self.pending_writes.clear()

    def rollback(self):
        # Returns to disk state which should be whatever it was prior to any write sessions
        log.debug('Discarding {} pending writes'.format(len(self.pending_writes)))
        self.pending_writes.clear()

    def clear_pending_state(self):
        self.rollback()


class ContractDriver(CacheDriver):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.delimiter = config.INDEX_SEPARATOR

    def items(self, prefix=''):
        # Get all of the items in the cache currently
        _items = {}
        keys = set()

        for k, v in self.pending_writes.items():
            if k.startswith(prefix):
                keys.add(k)
                if v is not None:
                    _items[k] = v

        # Get all of the keys we need
        db_keys = set(self.driver.iter(prefix=prefix))

        # Subtract the already gotten keys
        for k in db_keys - keys:
            _items[k] = self.driver.get(k)

        return dict(sorted(_items.items()))

    def keys(self, prefix=''):
        return list(self.items(prefix).keys())

    def values(self, prefix=''):
        return list(self.items(prefix).values())

    def make_key(self, contract, variable, args=[]):
        contract_variable = self.delimiter.join((contract, variable))
        if args:
            return config.DELIMITER.join((contract_variable, *[str(arg) for arg in args]))
        return contract_variable

    def get_var(self, contract, variable, arguments=[]):
        key = self.make_key(contract, variable, arguments)
        return self.get(key)

    def set_var(self, contract, variable, arguments=[], value=None):
        key = self.make_key(contract, variable, arguments)
        self.set(key, value)

    def set_contract(self, name, code_id: int):
        self.set_var(name, config.CODE_ID_KEY, value=code_id)

    def get_code_id(self, name):
        return self.get_var(name, config.CODE_ID_KEY)

    def flush(self):
        self.driver.flush()
        self.clear_pending_state()
