from collections import namedtuple
from enum import Enum

from mdtime import canonical, iso2datetime


class Kind(Enum):
  ENTITY = 'EntityDescriptor'
  AGGREGATE = 'EntitiesDescriptor'


_Model = namedtuple('AttributeModel', ['kind', 'creation_instant', 'valid_until',
                                       'entity_id', 'doc_id', 'registrar',
                                       'publisher', 'cache_duration'])


def _canonical(value):
  # offsets and fractional seconds are folded into YYYY-MM-DDThh:mm:ssZ
  if not value:
    return None
  return canonical(iso2datetime(value))


class AttributeModel(_Model):
  """
  The facts extracted from the top-level element of one metadata document.
  Either timestamp may be None; no ordering between them is enforced here.
  """
  __slots__ = ()

  def __new__(cls, kind, creation_instant=None, valid_until=None, entity_id=None,
              doc_id=None, registrar=None, publisher=None, cache_duration=None):
    return super(AttributeModel, cls).__new__(cls, Kind(kind), creation_instant or None,
                                              valid_until or None, entity_id, doc_id,
                                              registrar, publisher, cache_duration)

  @classmethod
  def from_doc_info(cls, info):
    if info is None:
      raise ValueError("no document info")
    if Kind.AGGREGATE.value in info:
      kind = Kind.AGGREGATE
    elif Kind.ENTITY.value in info:
      kind = Kind.ENTITY
    else:
      raise ValueError("document info has neither %s nor %s" % (Kind.ENTITY.value,
                                                                Kind.AGGREGATE.value))
    return cls(kind,
               creation_instant=_canonical(info.get('creationInstant')),
               valid_until=_canonical(info.get('validUntil')),
               entity_id=info.get('entityID'),
               doc_id=info.get('ID'),
               registrar=info.get('registrationAuthority'),
               publisher=info.get('publisher'),
               cache_duration=info.get('cacheDuration'))

  @property
  def is_aggregate(self):
    return self.kind is Kind.AGGREGATE

  def describe(self):
    return "%s/@ID=%s" % (self.kind.value, self.doc_id or '')
