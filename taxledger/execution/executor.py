from taxledger.execution.runtime import BlockInfo, Context, Env, Api, Querier
from taxledger.db.driver import ContractDriver
from taxledger.token.messages import ExecuteAction, ReceiveAction
from taxledger.token import contract
from taxledger.exceptions import CallDepthExceeded
from taxledger.logger import get_logger
from taxledger import config
from copy import deepcopy

import traceback

log = get_logger('Executor')


class Executor:
    """
    Runs one request and every action it emits as a single unit of work. The
    writes of the whole call tree stay in the driver's pending layer until the
    tree finishes; any failure puts the pending layer back as it was.

    Receivers are callables registered per contract address. They are called
    as receiver(env, action) for each ReceiveAction addressed to them and may
    return further actions, which run with the receiver as caller. Actions for
    addresses without a receiver are handed back in the output.
    """
    def __init__(self, driver=None, contract_address=config.DEFAULT_CONTRACT_ADDRESS, block=None):
        self.driver = driver

        if not self.driver:
            self.driver = ContractDriver()

        self.contract_address = contract_address
        self.block = block if block is not None else BlockInfo()

        self.api = Api()
        self.querier = Querier(self.driver)
        self.receivers = {}

    def register_receiver(self, address, receiver):
        self.receivers[address] = receiver

    def unregister_receiver(self, address):
        self.receivers.pop(address, None)

    def _env(self, sender, block):
        context = Context({
            'signer': sender,
            'caller': sender,
            'this': self.contract_address,
            'block': block,
        })

        return Env(self.driver, context, api=self.api, querier=self.querier)

    def _push(self, env, caller, this):
        state = {
            'signer': env.context.signer,
            'caller': caller,
            'this': this,
            'block': env.block,
        }

        if not env.context._add_state(state):
            raise CallDepthExceeded(depth=env.context.depth + 1, limit=config.MAX_CALL_DEPTH)

    def _dispatch(self, env, origin, actions, external):
        # Depth first, in emitted order
        for action in actions:
            if isinstance(action, ExecuteAction) and action.contract == self.contract_address:
                self._push(env, caller=origin, this=action.contract)
                try:
                    response = contract.execute(env, action.msg)
                    self._dispatch(env, action.contract, response.messages, external)
                finally:
                    env.context._pop_state()

            elif isinstance(action, ReceiveAction) and action.contract in self.receivers:
                self._push(env, caller=origin, this=action.contract)
                try:
                    follow_ups = self.receivers[action.contract](env, action) or []
                    self._dispatch(env, action.contract, follow_ups, external)
                finally:
                    env.context._pop_state()

            else:
                log.debug('Handing {} back to the host'.format(action))
                external.append(action)

    def _run(self, sender, fn, environment, auto_commit):
        block = environment.get('block', self.block)
        snapshot = dict(self.driver.pending_writes)
        external = []

        try:
            env = self._env(sender, block)
            self.api.addr_validate(sender)

            result = fn(env)
            self._dispatch(env, self.contract_address, result.messages, external)

            status_code = 0
            writes = deepcopy(self.driver.pending_writes)

            if auto_commit:
                self.driver.commit()
        except Exception as e:
            result = e
            tb = traceback.format_exc()
            log.error(str(e))
            log.error(tb)
            status_code = 1
            external = []

            self.driver.pending_writes.clear()
            self.driver.pending_writes.update(snapshot)
            writes = {}

        output = {
            'status_code': status_code,
            'result': result,
            'writes': writes,
            'actions': external,
        }

        return output

    def instantiate(self, sender, msg, code_id=None, environment={}, auto_commit=True) -> dict:
        def fn(env):
            if code_id is not None:
                self.driver.set_contract(self.contract_address, code_id)
            return contract.instantiate(env, sender, msg)

        return self._run(sender, fn, environment, auto_commit)

    def execute(self, sender, msg, environment={}, auto_commit=True) -> dict:
        return self._run(sender, lambda env: contract.execute(env, msg), environment, auto_commit)

    def query(self, msg, environment={}):
        env = self._env(None, environment.get('block', self.block))
        return contract.query(env, msg)
