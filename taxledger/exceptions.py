class TaxLedgerError(Exception):
    """
    The base exception for taxledger. The fmt directive
    will be overloaded by the inheriting classes

    :ivar msg: The message associated with the error
    """
    fmt = 'An unspecified error occurred'

    def __init__(self, **kwargs):
        msg = self.fmt.format(**kwargs)
        Exception.__init__(self, msg)
        self.kwargs = kwargs


class Unauthorized(TaxLedgerError):
    """
    The caller is not allowed to perform an administrative action

    :ivar sender: The address that attempted the action
    """
    fmt = "Unauthorized: '{sender}' may not perform this action"


class CannotSetOwnAccount(TaxLedgerError):
    fmt = 'Cannot set allowance to own account'


class InvalidExpiration(TaxLedgerError):
    fmt = 'Invalid expiration value: {expires} is already expired'


class Expired(TaxLedgerError):
    fmt = 'Allowance is expired'


class NoAllowance(TaxLedgerError):
    fmt = "No allowance for spender '{spender}' on owner '{owner}'"


class InsufficientFunds(TaxLedgerError):
    """
    A balance debit would underflow

    :ivar address: The account being debited
    :ivar balance: Its current balance
    :ivar amount: The amount requested
    """
    fmt = "Insufficient funds: '{address}' holds {balance}, needs {amount}"


class Overflow(TaxLedgerError):
    fmt = 'Cannot {operation} with {left} and {right}'


class InvalidTaxMap(TaxLedgerError):
    fmt = 'Invalid tax map: {reason}'


class InvalidAddress(TaxLedgerError):
    fmt = "Invalid address '{address}': {reason}"


class InvalidTokenInfo(TaxLedgerError):
    fmt = 'Invalid token info: {reason}'


class DuplicateInitialBalanceAddresses(TaxLedgerError):
    fmt = 'Duplicate initial balance addresses'


class CannotExceedCap(TaxLedgerError):
    fmt = 'Initial supply {supply} is greater than cap {cap}'


class NotAContract(TaxLedgerError):
    fmt = "Address '{address}' is not a registered contract"


class UnknownMessage(TaxLedgerError):
    fmt = "Unknown message '{name}'"


class CallDepthExceeded(TaxLedgerError):
    fmt = 'Deferred action depth {depth} exceeds the limit of {limit}'


class InvalidAmount(TaxLedgerError):
    fmt = 'Invalid amount {amount!r}: {reason}'


class InvalidMessage(TaxLedgerError):
    fmt = 'Invalid message: {reason}'
