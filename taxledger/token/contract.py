"""
Entry points of the taxed token: instantiate, execute and query.

Every handler takes an Env whose context names the caller. Handlers either
return a Response or raise before the surrounding Executor commits anything.
"""
from taxledger.token.state import TokenState, TokenInfo, MinterData
from taxledger.token.ledger import Ledger
from taxledger.token.allowances import AllowanceStore
from taxledger.token.tax import TaxMap, TRANSFER, TRANSFER_FROM, SEND, SEND_FROM
from taxledger.token import enumerable
from taxledger.token.messages import (
    Response, ExecuteAction, ReceiveAction, InstantiateMsg, parse_execute_msg, parse_query_msg,
    Transfer, Send, TransferFrom, SendFrom, IncreaseAllowance, DecreaseAllowance,
    SetTaxMap, SetTaxAdmin, Burn, BurnFrom,
    BalanceQuery, TokenInfoQuery, MinterQuery, AllowanceQuery, TaxMapQuery,
    AllAllowancesQuery, AllSpenderAllowancesQuery, AllAccountsQuery
)
from taxledger.execution.runtime import Env
from taxledger.exceptions import (
    Unauthorized, InvalidTokenInfo, DuplicateInitialBalanceAddresses, CannotExceedCap, Overflow, UnknownMessage
)
from taxledger.logger import get_logger
from taxledger import config

log = get_logger('Token')


def _state(env: Env):
    return TokenState(env.driver, contract=env.contract_address)


def load_tax_map(state: TokenState):
    raw = state.tax_map.get()
    if raw is None:
        return TaxMap.default()
    return TaxMap.from_dict(raw)


# Instantiation

def instantiate(env: Env, sender, msg):
    if isinstance(msg, dict):
        msg = InstantiateMsg.from_dict(msg)

    state = _state(env)

    if state.token_info.exists():
        raise InvalidTokenInfo(reason='token {} is already instantiated'.format(state.contract))

    state.contract_info.set({'contract': config.CONTRACT_NAME, 'version': config.CONTRACT_VERSION})

    msg.validate()

    total_supply = _create_accounts(env, state, msg.initial_balances)

    cap = msg.get_cap()
    if cap is not None and total_supply > cap:
        raise CannotExceedCap(supply=total_supply, cap=cap)

    mint = None
    if msg.mint is not None:
        mint = MinterData(minter=env.api.addr_validate(msg.mint.minter), cap=msg.mint.cap)

    state.save_token_info(TokenInfo(
        name=msg.name,
        symbol=msg.symbol,
        decimals=msg.decimals,
        total_supply=total_supply,
        mint=mint
    ))

    tax_map = msg.tax_map if msg.tax_map is not None else TaxMap.default()
    if tax_map.admin is None:
        tax_map.admin = ''
    elif tax_map.admin != '':
        env.api.addr_validate(tax_map.admin)

    tax_map.validate()
    state.tax_map.set(tax_map.to_dict())

    log.info('Instantiated {} ({}) at {} with supply {}'.format(msg.name, msg.symbol, state.contract, total_supply))

    return Response()


def _create_accounts(env, state, accounts):
    addresses = [address for address, _ in accounts]
    if len(set(addresses)) != len(addresses):
        raise DuplicateInitialBalanceAddresses()

    ledger = Ledger(state)

    total_supply = 0
    for address, amount in accounts:
        env.api.addr_validate(address)
        ledger.credit(address, amount)

        if total_supply + amount > config.UINT128_MAX:
            raise Overflow(operation='add', left=total_supply, right=amount)
        total_supply += amount

    return total_supply


# Settlement

def _settle(env, state, category, payer, recipient, amount):
    """
    Moves amount from payer to recipient under the category's tax rule. The
    tax is escrowed on the contract's own account; the caller is responsible
    for emitting the action that forwards it to the proceeds address.

    Returns (net, tax, proceeds).
    """
    rule = load_tax_map(state).rule_for(category)

    # Payouts from the contract's own account (tax forwarding) are never taxed
    if payer == env.contract_address:
        net, tax = amount, 0
    else:
        net, tax = rule.deduct_tax(env.querier, payer, recipient, amount)

    ledger = Ledger(state)
    ledger.debit(payer, amount)

    if tax > 0:
        ledger.credit(env.contract_address, tax)

    ledger.credit(recipient, net)

    log.debug('{}: {} -> {} amount={} net={} tax={}'.format(category, payer, recipient, amount, net, tax))

    return net, tax, rule.proceeds


def _forward_tax(env, response, net, tax, proceeds):
    if tax > 0:
        response.add_message(ExecuteAction(env.contract_address, Transfer(recipient=proceeds, amount=tax)))
        response.add_attribute('net', net)
        response.add_attribute('tax', tax)
        response.add_attribute('proceeds', proceeds)

    return response


def execute_transfer(env: Env, msg: Transfer):
    sender = env.context.caller
    recipient = env.api.addr_validate(msg.recipient)

    state = _state(env)
    net, tax, proceeds = _settle(env, state, TRANSFER, sender, recipient, msg.amount)

    response = Response().add_attributes([
        ('action', 'transfer'),
        ('from', sender),
        ('to', recipient),
        ('amount', msg.amount),
    ])

    return _forward_tax(env, response, net, tax, proceeds)


def execute_send(env: Env, msg: Send):
    sender = env.context.caller
    contract = env.api.addr_validate(msg.contract)

    state = _state(env)
    net, tax, proceeds = _settle(env, state, SEND, sender, contract, msg.amount)

    response = Response().add_attributes([
        ('action', 'send'),
        ('from', sender),
        ('to', contract),
        ('amount', msg.amount),
    ])

    # The payload delivery always precedes the tax forwarding
    response.add_message(ReceiveAction(contract, sender=sender, amount=net, msg=msg.msg or b''))

    return _forward_tax(env, response, net, tax, proceeds)


def execute_transfer_from(env: Env, msg: TransferFrom):
    spender = env.context.caller
    owner = env.api.addr_validate(msg.owner)
    recipient = env.api.addr_validate(msg.recipient)

    state = _state(env)
    AllowanceStore(state).deduct(owner, spender, msg.amount, env.block)

    net, tax, proceeds = _settle(env, state, TRANSFER_FROM, owner, recipient, msg.amount)

    response = Response().add_attributes([
        ('action', 'transfer_from'),
        ('from', owner),
        ('to', recipient),
        ('by', spender),
        ('amount', msg.amount),
    ])

    return _forward_tax(env, response, net, tax, proceeds)


def execute_send_from(env: Env, msg: SendFrom):
    spender = env.context.caller
    owner = env.api.addr_validate(msg.owner)
    contract = env.api.addr_validate(msg.contract)

    state = _state(env)
    AllowanceStore(state).deduct(owner, spender, msg.amount, env.block)

    net, tax, proceeds = _settle(env, state, SEND_FROM, owner, contract, msg.amount)

    response = Response().add_attributes([
        ('action', 'send_from'),
        ('from', owner),
        ('to', contract),
        ('by', spender),
        ('amount', msg.amount),
    ])

    response.add_message(ReceiveAction(contract, sender=spender, amount=net, msg=msg.msg or b''))

    return _forward_tax(env, response, net, tax, proceeds)


def execute_burn(env: Env, msg: Burn):
    sender = env.context.caller
    ledger = Ledger(_state(env))

    ledger.debit(sender, msg.amount)
    ledger.reduce_supply(msg.amount)

    return Response().add_attributes([
        ('action', 'burn'),
        ('from', sender),
        ('amount', msg.amount),
    ])


def execute_burn_from(env: Env, msg: BurnFrom):
    spender = env.context.caller
    owner = env.api.addr_validate(msg.owner)

    state = _state(env)
    AllowanceStore(state).deduct(owner, spender, msg.amount, env.block)

    ledger = Ledger(state)
    ledger.debit(owner, msg.amount)
    ledger.reduce_supply(msg.amount)

    return Response().add_attributes([
        ('action', 'burn_from'),
        ('from', owner),
        ('by', spender),
        ('amount', msg.amount),
    ])


# Allowances

def execute_increase_allowance(env: Env, msg: IncreaseAllowance):
    owner = env.context.caller
    spender = env.api.addr_validate(msg.spender)

    AllowanceStore(_state(env)).increase(owner, spender, msg.amount, env.block, expires=msg.expires)

    return Response().add_attributes([
        ('action', 'increase_allowance'),
        ('owner', owner),
        ('spender', spender),
        ('amount', msg.amount),
    ])


def execute_decrease_allowance(env: Env, msg: DecreaseAllowance):
    owner = env.context.caller
    spender = env.api.addr_validate(msg.spender)

    AllowanceStore(_state(env)).decrease(owner, spender, msg.amount, env.block, expires=msg.expires)

    return Response().add_attributes([
        ('action', 'decrease_allowance'),
        ('owner', owner),
        ('spender', spender),
        ('amount', msg.amount),
    ])


# Administration

def _authorize_admin(env, tax_map: TaxMap):
    if tax_map.admin != env.context.caller:
        raise Unauthorized(sender=env.context.caller)


def execute_set_tax_map(env: Env, msg: SetTaxMap):
    state = _state(env)
    current = load_tax_map(state)
    _authorize_admin(env, current)

    if msg.tax_map is None:
        new_tax_map = TaxMap.default(admin=current.admin)
    else:
        admin = msg.tax_map.admin
        if admin is None:
            admin = current.admin
        elif admin != '':
            env.api.addr_validate(admin)

        new_tax_map = TaxMap(
            on_transfer=msg.tax_map.on_transfer,
            on_transfer_from=msg.tax_map.on_transfer_from,
            on_send=msg.tax_map.on_send,
            on_send_from=msg.tax_map.on_send_from,
            admin=admin
        )

    new_tax_map.validate()
    state.tax_map.set(new_tax_map.to_dict())

    log.info('Tax map of {} replaced by {}'.format(state.contract, env.context.caller))

    return Response().add_attribute('admin', new_tax_map.admin)


def execute_set_tax_admin(env: Env, msg: SetTaxAdmin):
    state = _state(env)
    tax_map = load_tax_map(state)
    _authorize_admin(env, tax_map)

    if msg.tax_admin is None:
        tax_map.admin = ''
    else:
        tax_map.admin = env.api.addr_validate(msg.tax_admin)

    state.tax_map.set(tax_map.to_dict())

    log.info('Tax admin of {} set to {!r}'.format(state.contract, tax_map.admin))

    return Response().add_attribute('admin', tax_map.admin)


EXECUTE_HANDLERS = {
    Transfer: execute_transfer,
    Send: execute_send,
    TransferFrom: execute_transfer_from,
    SendFrom: execute_send_from,
    IncreaseAllowance: execute_increase_allowance,
    DecreaseAllowance: execute_decrease_allowance,
    SetTaxMap: execute_set_tax_map,
    SetTaxAdmin: execute_set_tax_admin,
    Burn: execute_burn,
    BurnFrom: execute_burn_from,
}


def execute(env: Env, msg):
    msg = parse_execute_msg(msg)

    handler = EXECUTE_HANDLERS.get(type(msg))
    if handler is None:
        raise UnknownMessage(name=msg.name)

    return handler(env, msg)


# Queries

def query_balance(env, msg: BalanceQuery):
    address = env.api.addr_validate(msg.address)
    return {'balance': Ledger(_state(env)).balance(address)}


def query_token_info(env, msg: TokenInfoQuery):
    info = _state(env).load_token_info()
    return {
        'name': info.name,
        'symbol': info.symbol,
        'decimals': info.decimals,
        'total_supply': info.total_supply,
    }


def query_minter(env, msg: MinterQuery):
    info = _state(env).load_token_info()
    if info.mint is None:
        return None
    return info.mint.to_dict()


def query_allowance(env, msg: AllowanceQuery):
    owner = env.api.addr_validate(msg.owner)
    spender = env.api.addr_validate(msg.spender)
    return AllowanceStore(_state(env)).query(owner, spender).to_dict()


def query_tax_map(env, msg: TaxMapQuery):
    return load_tax_map(_state(env)).to_dict()


def query_all_allowances(env, msg: AllAllowancesQuery):
    owner = env.api.addr_validate(msg.owner)
    return enumerable.query_owner_allowances(_state(env), owner, start_after=msg.start_after, limit=msg.limit)


def query_all_spender_allowances(env, msg: AllSpenderAllowancesQuery):
    spender = env.api.addr_validate(msg.spender)
    return enumerable.query_spender_allowances(_state(env), spender, start_after=msg.start_after, limit=msg.limit)


def query_all_accounts(env, msg: AllAccountsQuery):
    return enumerable.query_all_accounts(_state(env), start_after=msg.start_after, limit=msg.limit)


QUERY_HANDLERS = {
    BalanceQuery: query_balance,
    TokenInfoQuery: query_token_info,
    MinterQuery: query_minter,
    AllowanceQuery: query_allowance,
    TaxMapQuery: query_tax_map,
    AllAllowancesQuery: query_all_allowances,
    AllSpenderAllowancesQuery: query_all_spender_allowances,
    AllAccountsQuery: query_all_accounts,
}


def query(env: Env, msg):
    msg = parse_query_msg(msg)

    handler = QUERY_HANDLERS.get(type(msg))
    if handler is None:
        raise UnknownMessage(name=msg.name)

    return handler(env, msg)
