import logging
from collections import namedtuple
from enum import Enum

from mdtime import secs_between, secs2duration, parse_duration, datetime_delta

log = logging.getLogger(__name__)

DEFAULT_EXPIRATION_WARNING_INTERVAL = 'P2D'


class WarningKind(Enum):
  NO_VALID_UNTIL = 'no @validUntil'
  EXPIRATION_IMMINENT = 'expiration imminent'
  NO_FRESHNESS_CONFIGURED = 'no freshness interval'
  NO_CREATION_INSTANT = 'no @creationInstant'
  SUBINTERVALS_OVERLAP = 'subintervals overlap'
  STALE = 'stale'
  FRESH = 'fresh'
  INCONSISTENT = 'inconsistent'


WARNINGS = (WarningKind.EXPIRATION_IMMINENT, WarningKind.SUBINTERVALS_OVERLAP, WarningKind.STALE)


class WarningVerdict(namedtuple('WarningVerdict', ['kind', 'secs_until_expiration',
                                                   'secs_since_creation',
                                                   'validity_interval_secs'])):
  __slots__ = ()

  def __new__(cls, kind, secs_until_expiration=None, secs_since_creation=None,
              validity_interval_secs=None):
    return super(WarningVerdict, cls).__new__(cls, kind, secs_until_expiration,
                                              secs_since_creation, validity_interval_secs)

  @property
  def is_warning(self):
    return self.kind in WARNINGS

  @property
  def is_error(self):
    return self.kind is WarningKind.INCONSISTENT


def evaluate_warning(model, current_time, expiration_warning_len=DEFAULT_EXPIRATION_WARNING_INTERVAL,
                     freshness_len=None):
  """
  Check the expiration warning interval (right-anchored at @validUntil) and
  the freshness interval (left-anchored at @creationInstant) of a document
  already known to be valid at current_time.

  At most one warning is produced: an imminent expiration preempts every
  freshness check. A zero-length interval disables its check.
  """
  expiration_warning_len = parse_duration(expiration_warning_len)
  if freshness_len is not None:
    freshness_len = parse_duration(freshness_len)

  if model.valid_until is None:
    log.info("validUntil not found")
    return WarningVerdict(WarningKind.NO_VALID_UNTIL)
  log.debug("validUntil: %s", model.valid_until)
  log.debug("currentTime: %s", current_time)

  secs_until_expiration = secs_between(current_time, model.valid_until)
  log.debug("secsUntilExpiration: %d", secs_until_expiration)
  if secs_until_expiration <= 0:
    log.error("metadata already expired (secsUntilExpiration: %d)", secs_until_expiration)
    return WarningVerdict(WarningKind.INCONSISTENT, secs_until_expiration)

  warning_secs = expiration_warning_len.secs
  log.info("expirationWarningInterval: %s", expiration_warning_len)
  if warning_secs:
    log.debug("expirationWarningThreshold: %s",
              datetime_delta(model.valid_until, expiration_warning_len, before=True))
  if secs_until_expiration <= warning_secs:
    log.warning("expiration warning: time until expiration: %s", secs2duration(secs_until_expiration))
    return WarningVerdict(WarningKind.EXPIRATION_IMMINENT, secs_until_expiration)
  if warning_secs:
    log.info("time until first expiration warning: %s",
             secs2duration(secs_until_expiration - warning_secs))

  if not freshness_len:
    log.info("freshness interval not configured")
    return WarningVerdict(WarningKind.NO_FRESHNESS_CONFIGURED, secs_until_expiration)
  log.info("freshnessInterval: %s", freshness_len)

  if model.creation_instant is None:
    log.info("creationInstant not found")
    return WarningVerdict(WarningKind.NO_CREATION_INSTANT, secs_until_expiration)
  log.debug("creationInstant: %s", model.creation_instant)

  actual = secs_between(model.creation_instant, model.valid_until)
  log.debug("actualValidityIntervalSecs: %d", actual)
  if actual < 0:
    log.error("validity interval has negative length: %d", actual)
    return WarningVerdict(WarningKind.INCONSISTENT, secs_until_expiration, None, actual)
  log.info("actualValidityInterval: %s", secs2duration(actual))

  if freshness_len.secs + warning_secs > actual:
    log.warning("subintervals overlap: '%s' + '%s' > '%s'",
                freshness_len, expiration_warning_len, secs2duration(actual))
    return WarningVerdict(WarningKind.SUBINTERVALS_OVERLAP, secs_until_expiration, None, actual)

  secs_since_creation = secs_between(model.creation_instant, current_time)
  log.debug("secsSinceCreation: %d", secs_since_creation)
  log.debug("freshUntil: %s", datetime_delta(model.creation_instant, freshness_len, before=False))
  if secs_since_creation >= freshness_len.secs:
    log.warning("stale metadata detected: time since creation: %s", secs2duration(secs_since_creation))
    return WarningVerdict(WarningKind.STALE, secs_until_expiration, secs_since_creation, actual)

  log.info("time until first stale warning: %s",
           secs2duration(freshness_len.secs - secs_since_creation))
  return WarningVerdict(WarningKind.FRESH, secs_until_expiration, secs_since_creation, actual)
