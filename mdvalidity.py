import logging
from collections import namedtuple
from enum import Enum

from mdtime import secs_between, secs2duration, duration2secs, canonical2secs

log = logging.getLogger(__name__)

DEFAULT_MAX_VALIDITY_INTERVAL = 'P14D'


class Validity(Enum):
  VALID = 'valid'
  EXPIRED = 'expired'
  CREATED_IN_FUTURE = 'created in future'


class ValidityVerdict(namedtuple('ValidityVerdict', ['status', 'timestamp', 'secs'])):
  __slots__ = ()

  @property
  def valid(self):
    return self.status is Validity.VALID


VALID = ValidityVerdict(Validity.VALID, None, 0)


def evaluate(model, current_time):
  """
  Decide whether the document is usable at current_time.

  An absent @validUntil or @creationInstant is skipped; a document with
  neither is valid. Expiration is inclusive of the @validUntil instant.
  """
  log.debug("currentTime: %s", current_time)

  if model.valid_until is None:
    log.info("metadata has no @validUntil attribute")
  else:
    log.info("validUntil: %s", model.valid_until)
    secs_until_expiration = secs_between(current_time, model.valid_until)
    log.debug("secsUntilExpiration: %d", secs_until_expiration)
    if secs_until_expiration <= 0:
      log.error("time since expiration: %s", secs2duration(-secs_until_expiration))
      return ValidityVerdict(Validity.EXPIRED, model.valid_until, -secs_until_expiration)
    log.info("time until expiration: %s", secs2duration(secs_until_expiration))

  if model.creation_instant is None:
    log.info("metadata has no @creationInstant attribute")
  else:
    log.info("creationInstant: %s", model.creation_instant)
    secs_since_creation = secs_between(model.creation_instant, current_time)
    log.debug("secsSinceCreation: %d", secs_since_creation)
    if secs_since_creation < 0:
      log.error("time until creation: %s", secs2duration(-secs_since_creation))
      return ValidityVerdict(Validity.CREATED_IN_FUTURE, model.creation_instant, -secs_since_creation)
    log.info("time since creation: %s", secs2duration(secs_since_creation))

  return VALID


class Timestamps(Enum):
  OK = 'ok'
  NO_CREATION_INSTANT = 'no @creationInstant'
  NO_VALID_UNTIL = 'no @validUntil'
  MISSING_TIMESTAMPS = 'timestamps missing'
  NEGATIVE_INTERVAL = 'negative validity interval'
  INTERVAL_TOO_LONG = 'validity interval too long'
  TOO_FAR_IN_FUTURE = '@validUntil too far into the future'
  CREATED_IN_FUTURE = '@creationInstant in the future'
  UNEXPECTED_INTERVAL = 'unexpected validity interval'


class TimestampVerdict(namedtuple('TimestampVerdict', ['kind', 'secs', 'limit_secs'])):
  __slots__ = ()

  def __new__(cls, kind, secs=None, limit_secs=None):
    return super(TimestampVerdict, cls).__new__(cls, kind, secs, limit_secs)

  @property
  def ok(self):
    return self.kind in (Timestamps.OK, Timestamps.MISSING_TIMESTAMPS)


def _validity_interval(model):
  secs = secs_between(model.creation_instant, model.valid_until)
  log.debug("actualValidityIntervalSecs: %d", secs)
  if secs < 0:
    log.error("validity interval has negative length: %d", secs)
  return secs


def require_timestamps(model, max_validity_len=DEFAULT_MAX_VALIDITY_INTERVAL):
  """
  Both @creationInstant and @validUntil must be present and the validity
  interval they bound must not exceed max_validity_len.
  """
  max_secs = duration2secs(max_validity_len)
  log.info("maxValidityInterval: %s", max_validity_len)

  if model.creation_instant is None:
    log.error("creationInstant not found")
    return TimestampVerdict(Timestamps.NO_CREATION_INSTANT)
  if model.valid_until is None:
    log.error("validUntil not found")
    return TimestampVerdict(Timestamps.NO_VALID_UNTIL)

  actual = _validity_interval(model)
  if actual < 0:
    return TimestampVerdict(Timestamps.NEGATIVE_INTERVAL, actual, max_secs)
  if actual > max_secs:
    log.error("validity interval too long: %s > %s", secs2duration(actual), max_validity_len)
    return TimestampVerdict(Timestamps.INTERVAL_TOO_LONG, actual, max_secs)
  log.info("actualValidityInterval: %s", secs2duration(actual))
  return TimestampVerdict(Timestamps.OK, actual, max_secs)


def require_valid_until(model, current_time, max_validity_len=DEFAULT_MAX_VALIDITY_INTERVAL):
  """
  @validUntil must be present and no further than max_validity_len from current_time.
  """
  if model.valid_until is None:
    log.error("validUntil not found")
    return TimestampVerdict(Timestamps.NO_VALID_UNTIL)
  log.info("validUntil: %s", model.valid_until)

  max_secs = duration2secs(max_validity_len)
  max_valid_until_secs = canonical2secs(current_time) + max_secs
  valid_until_secs = canonical2secs(model.valid_until)
  log.debug("validUntilSecs: %d, maxValidUntilSecs: %d", valid_until_secs, max_valid_until_secs)
  if valid_until_secs >= max_valid_until_secs:
    log.error("@validUntil is too far into the future")
    return TimestampVerdict(Timestamps.TOO_FAR_IN_FUTURE, valid_until_secs - max_valid_until_secs, max_secs)
  return TimestampVerdict(Timestamps.OK, max_valid_until_secs - valid_until_secs, max_secs)


def check_validity_interval(model, expected_len):
  expected = duration2secs(expected_len)
  if model.creation_instant is None or model.valid_until is None:
    log.info("creationInstant or validUntil not found")
    return TimestampVerdict(Timestamps.MISSING_TIMESTAMPS, None, expected)
  log.info("expectedValidityInterval: %s", expected_len)

  actual = _validity_interval(model)
  if actual < 0:
    return TimestampVerdict(Timestamps.NEGATIVE_INTERVAL, actual, expected)
  if actual != expected:
    log.warning("unexpected validity interval: %s", secs2duration(actual))
    return TimestampVerdict(Timestamps.UNEXPECTED_INTERVAL, actual, expected)
  log.info("actualValidityInterval: %s", secs2duration(actual))
  return TimestampVerdict(Timestamps.OK, actual, expected)


def require_creation_instant(model, current_time):
  """
  @creationInstant must be present and strictly before current_time.
  """
  if model.creation_instant is None:
    log.error("creationInstant not found")
    return TimestampVerdict(Timestamps.NO_CREATION_INSTANT)
  log.info("creationInstant: %s", model.creation_instant)
  log.debug("currentTime: %s", current_time)

  secs_since_creation = secs_between(model.creation_instant, current_time)
  log.debug("secsSinceCreation: %d", secs_since_creation)
  if secs_since_creation <= 0:
    log.error("@creationInstant is in the future")
    return TimestampVerdict(Timestamps.CREATED_IN_FUTURE, -secs_since_creation)
  return TimestampVerdict(Timestamps.OK, secs_since_creation)
