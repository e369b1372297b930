import os

MONGO_URL = os.getenv('TAXLEDGER_MONGO_URL', 'mongodb://localhost:27017')
MONGO_DB = os.getenv('TAXLEDGER_MONGO_DB', 'taxledger')
MONGO_COLLECTION = os.getenv('TAXLEDGER_MONGO_COLLECTION', 'state')
MONGO_TIMEOUT_MS = 2000

DELIMITER = ':'
INDEX_SEPARATOR = '.'
CODE_ID_KEY = '__code_id__'

MAX_HASH_DIMENSIONS = 16
MAX_KEY_SIZE = 1024
MAX_ADDRESS_LENGTH = 256

# Amounts are unsigned 128 bit integers
UINT128_MAX = 2 ** 128 - 1

# Rates carry 18 fractional digits, the working context is wide enough for Uint128 * rate
RATE_PLACES = 18
DECIMAL_PRECISION = 80

DEFAULT_CONTRACT_ADDRESS = 'taxed_token'
CONTRACT_NAME = 'taxledger:cw20-taxed'
CONTRACT_VERSION = '1.1.0'

# Token info limits
NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50
SYMBOL_PATTERN = r'^[a-zA-Z\-]{3,12}$'
MAX_DECIMALS = 18

# Enumeration
DEFAULT_LIMIT = 10
MAX_LIMIT = 30

# Re-entry bound for deferred actions executed within one call tree
MAX_CALL_DEPTH = 16

# Storage variable names
BALANCES = 'balances'
ALLOWANCES = 'allowances'
ALLOWANCES_SPENDER = 'allowances_spender'
TAX_MAP = 'tax_map'
TOKEN_INFO = 'token_info'
CONTRACT_INFO = 'contract_info'
