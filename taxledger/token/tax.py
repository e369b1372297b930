from taxledger.stdlib.decimal import make_decimal, net_after_rate, ZERO, ONE
from taxledger.exceptions import InvalidTaxMap, NotAContract

TRANSFER = 'on_transfer'
TRANSFER_FROM = 'on_transfer_from'
SEND = 'on_send'
SEND_FROM = 'on_send_from'

CATEGORIES = (TRANSFER, TRANSFER_FROM, SEND, SEND_FROM)


class TaxCondition:
    """
    Closed set of conditions. New kinds extend KINDS and the dispatch in
    is_taxed, tax_rate and validate.

    never           never taxed, rate 0
    always          always taxed at tax_rate
    contract_code   taxed at tax_rate when the address is a contract whose
                    code id is listed in code_ids
    """
    NEVER = 'never'
    ALWAYS = 'always'
    CONTRACT_CODE = 'contract_code'

    KINDS = (NEVER, ALWAYS, CONTRACT_CODE)

    def __init__(self, kind=NEVER, tax_rate=ZERO, code_ids=None):
        self.kind = kind
        self.tax_rate_value = make_decimal(tax_rate)
        self.code_ids = [int(c) for c in code_ids] if code_ids is not None else []

    @classmethod
    def never(cls):
        return cls(cls.NEVER)

    @classmethod
    def always(cls, tax_rate):
        return cls(cls.ALWAYS, tax_rate=tax_rate)

    @classmethod
    def contract_code(cls, code_ids, tax_rate):
        return cls(cls.CONTRACT_CODE, tax_rate=tax_rate, code_ids=code_ids)

    def _unknown(self):
        return InvalidTaxMap(reason='unknown tax condition {!r}'.format(self.kind))

    def is_taxed(self, querier, addr):
        if self.kind == self.NEVER:
            return False
        elif self.kind == self.ALWAYS:
            return True
        elif self.kind == self.CONTRACT_CODE:
            try:
                return querier.code_id(addr) in self.code_ids
            except NotAContract:
                return False
        raise self._unknown()

    def tax_rate(self, querier, addr):
        if self.kind == self.NEVER:
            return ZERO
        elif self.kind == self.ALWAYS:
            return self.tax_rate_value
        elif self.kind == self.CONTRACT_CODE:
            return self.tax_rate_value if self.is_taxed(querier, addr) else ZERO
        raise self._unknown()

    def tax_deduction(self, querier, addr, amount: int):
        rate = self.tax_rate(querier, addr)
        net = net_after_rate(amount, rate)
        return net, amount - net

    def validate(self):
        if self.kind == self.NEVER:
            return True
        elif self.kind in (self.ALWAYS, self.CONTRACT_CODE):
            return ZERO <= self.tax_rate_value <= ONE
        return False

    def to_dict(self):
        if self.kind == self.ALWAYS:
            return {self.ALWAYS: {'tax_rate': self.tax_rate_value}}
        elif self.kind == self.CONTRACT_CODE:
            return {self.CONTRACT_CODE: {'code_ids': list(self.code_ids), 'tax_rate': self.tax_rate_value}}
        return {self.kind: {}}

    @classmethod
    def from_dict(cls, d):
        if isinstance(d, TaxCondition):
            return d

        if not isinstance(d, dict) or len(d) != 1:
            raise InvalidTaxMap(reason='a tax condition needs exactly one kind')

        kind, body = next(iter(d.items()))
        body = body or {}

        try:
            if kind == cls.NEVER:
                return cls.never()
            elif kind == cls.ALWAYS:
                return cls.always(body['tax_rate'])
            elif kind == cls.CONTRACT_CODE:
                return cls.contract_code(body.get('code_ids', []), body['tax_rate'])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTaxMap(reason='malformed {} condition ({})'.format(kind, e))

        raise InvalidTaxMap(reason='unknown tax condition {!r}'.format(kind))

    def __eq__(self, other):
        return isinstance(other, TaxCondition) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'TaxCondition({})'.format(self.to_dict())


class TaxInfo:
    def __init__(self, src_cond: TaxCondition = None, dst_cond: TaxCondition = None, proceeds=''):
        self.src_cond = src_cond if src_cond is not None else TaxCondition.never()
        self.dst_cond = dst_cond if dst_cond is not None else TaxCondition.never()
        self.proceeds = proceeds

    def is_taxed(self, querier, sender, recipient):
        return self.src_cond.is_taxed(querier, sender) \
            and self.dst_cond.is_taxed(querier, recipient) \
            and self.proceeds != recipient

    def deduct_tax(self, querier, sender, recipient, amount: int):
        """
        Splits amount into (net, tax). When taxed the source condition's rate
        applies; both conditions are expected to agree on it. net is rounded
        up, so net + tax == amount and tax never exceeds amount * rate.
        """
        if not self.is_taxed(querier, sender, recipient):
            return amount, 0

        return self.src_cond.tax_deduction(querier, sender, amount)

    def validate(self):
        return self.src_cond.validate() and self.dst_cond.validate()

    def to_dict(self):
        return {
            'src_cond': self.src_cond.to_dict(),
            'dst_cond': self.dst_cond.to_dict(),
            'proceeds': self.proceeds,
        }

    @classmethod
    def from_dict(cls, d):
        if isinstance(d, TaxInfo):
            return d
        if d is None:
            return cls()
        if not isinstance(d, dict):
            raise InvalidTaxMap(reason='a tax rule must be an object')

        return cls(
            src_cond=TaxCondition.from_dict(d.get('src_cond', {TaxCondition.NEVER: {}})),
            dst_cond=TaxCondition.from_dict(d.get('dst_cond', {TaxCondition.NEVER: {}})),
            proceeds=d.get('proceeds', '')
        )

    def __eq__(self, other):
        return isinstance(other, TaxInfo) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'TaxInfo({})'.format(self.to_dict())


class TaxMap:
    def __init__(self, on_transfer=None, on_transfer_from=None, on_send=None, on_send_from=None, admin=''):
        self.on_transfer = on_transfer if on_transfer is not None else TaxInfo()
        self.on_transfer_from = on_transfer_from if on_transfer_from is not None else TaxInfo()
        self.on_send = on_send if on_send is not None else TaxInfo()
        self.on_send_from = on_send_from if on_send_from is not None else TaxInfo()
        # None means "not given" and is resolved against the stored admin by set_tax_map
        self.admin = admin

    @classmethod
    def default(cls, admin=''):
        return cls(admin=admin)

    def rule_for(self, category):
        if category not in CATEGORIES:
            raise InvalidTaxMap(reason='unknown category {!r}'.format(category))
        return getattr(self, category)

    def validate(self):
        for category in CATEGORIES:
            if not self.rule_for(category).validate():
                raise InvalidTaxMap(reason='{} has a tax rate outside [0, 1]'.format(category))

    def to_dict(self):
        d = {category: self.rule_for(category).to_dict() for category in CATEGORIES}
        d['admin'] = self.admin
        return d

    @classmethod
    def from_dict(cls, d):
        if isinstance(d, TaxMap):
            return d
        if d is None:
            return None
        if not isinstance(d, dict):
            raise InvalidTaxMap(reason='a tax map must be an object')

        unknown = set(d.keys()) - set(CATEGORIES) - {'admin'}
        if unknown:
            raise InvalidTaxMap(reason='unknown fields {}'.format(sorted(unknown)))

        rules = {category: TaxInfo.from_dict(d.get(category)) for category in CATEGORIES}
        return cls(admin=d.get('admin'), **rules)

    def __eq__(self, other):
        return isinstance(other, TaxMap) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return 'TaxMap({})'.format(self.to_dict())
