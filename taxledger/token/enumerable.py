"""
Paginated listings over the balance and allowance indices. Pages are ordered
by address, ``start_after`` is exclusive and ``limit`` defaults to
config.DEFAULT_LIMIT, clamped to config.MAX_LIMIT.
"""
from taxledger.token.state import TokenState
from taxledger.token.allowances import AllowanceResponse
from taxledger import config


def clamp_limit(limit=None):
    if limit is None:
        return config.DEFAULT_LIMIT
    return max(0, min(int(limit), config.MAX_LIMIT))


def _page(items, start_after, limit):
    limit = clamp_limit(limit)

    page = []
    for key, value in items:
        if start_after is not None and key <= start_after:
            continue
        if len(page) >= limit:
            break
        page.append((key, value))

    return page


def query_all_accounts(state: TokenState, start_after=None, limit=None):
    accounts = [address for address, _ in _page(state.balances.items(), start_after, limit)]
    return {'accounts': accounts}


def query_owner_allowances(state: TokenState, owner, start_after=None, limit=None):
    allowances = []
    for spender, raw in _page(state.allowances.items(owner), start_after, limit):
        allowance = AllowanceResponse.from_dict(raw)
        allowances.append({
            'spender': spender,
            'allowance': allowance.allowance,
            'expires': allowance.expires.to_dict(),
        })

    return {'allowances': allowances}


def query_spender_allowances(state: TokenState, spender, start_after=None, limit=None):
    # Reads the mirror index, so no scan over every owner is needed
    allowances = []
    for owner, raw in _page(state.allowances_spender.items(spender), start_after, limit):
        allowance = AllowanceResponse.from_dict(raw)
        allowances.append({
            'owner': owner,
            'allowance': allowance.allowance,
            'expires': allowance.expires.to_dict(),
        })

    return {'allowances': allowances}
